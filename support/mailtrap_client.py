"""
Mailtrap API client used as a test oracle for email notifications.

The lookup operations wait a grace period for the upstream notification
pipeline to deliver, then poll the inbox with retry_until until a message
matching recipient and subject shows up.

Each lookup has an asyncio twin (`*_async`) that suspends only the calling
task during the grace period and between polls; HTTP calls run in a worker
thread.
"""
import asyncio
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from api_client import BaseApiClient
from cloudx_config import CloudxSettings, REQUIRED_FOR_MAILBOX
from logging_utils import log_safe
from retry_utils import RetryPolicy, retry_until, retry_until_async, wait, wait_async


EARLIEST = datetime.min.replace(tzinfo=timezone.utc)


class MessageNotFound(LookupError):
    """No inbox message matched the recipient/subject criteria."""


@dataclass(frozen=True)
class MailboxMessage:
    id: str
    recipient: str
    subject: str
    sent_at: str

    @classmethod
    def from_api(cls, payload: Dict[str, Any]) -> 'MailboxMessage':
        """Build from a Mailtrap message summary."""
        return cls(
            id=str(payload['id']),
            recipient=payload.get('to_email') or '',
            subject=payload.get('subject') or '',
            sent_at=payload.get('sent_at') or ''
        )

    @property
    def sent_at_time(self) -> datetime:
        """
        sent_at as an aware datetime; naive values are taken as UTC.

        Unparseable or missing timestamps sort before every real one.
        """
        try:
            parsed = datetime.fromisoformat(self.sent_at.replace('Z', '+00:00'))
        except ValueError:
            return EARLIEST
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed


def find_matching_messages(messages: List[MailboxMessage], recipient: str, subject: str) -> List[MailboxMessage]:
    """
    Filter messages by recipient containment and exact subject.

    Args:
        messages: Inbox messages in API order
        recipient: Address that must appear in the message's recipient field
        subject: Subject that must match exactly

    Returns:
        Matching messages, API order preserved
    """
    return [
        message for message in messages
        if recipient in message.recipient and message.subject == subject
    ]


class MailtrapApiClient:
    """
    Reads a single Mailtrap inbox.

    Args:
        settings: Suite settings (Mailtrap URL, token, account and inbox ids)
        grace_period_ms: Wait before the first poll (default from settings)
        poll_policy: Attempts/delay for polling (default from settings)
        newest_first: Sort matches by sent_at descending instead of relying
            on the API returning newest messages first
        client: Pre-built BaseApiClient (tests)
    """

    def __init__(
        self,
        settings: CloudxSettings,
        grace_period_ms: int = None,
        poll_policy: RetryPolicy = None,
        newest_first: bool = False,
        client: BaseApiClient = None
    ):
        settings.require(REQUIRED_FOR_MAILBOX)

        self.inbox_id = settings.mailtrap_inbox_id
        self.grace_period_ms = settings.mailbox_grace_ms if grace_period_ms is None else grace_period_ms
        self.poll_policy = poll_policy or RetryPolicy(settings.mailbox_attempts, settings.mailbox_delay_ms)
        self.newest_first = newest_first
        self._client = client or BaseApiClient(
            f"{settings.mailtrap_url}/accounts/{settings.mailtrap_account_id}",
            {'headers': {'Api-Token': settings.mailtrap_token}}
        )

    def get_all_messages(self) -> List[MailboxMessage]:
        response = self._client.get(f"/inboxes/{self.inbox_id}/messages")
        return [MailboxMessage.from_api(item) for item in response.json()]

    def get_message_text_by_id(self, message_id: str) -> str:
        return self._client.get(f"/inboxes/{self.inbox_id}/messages/{message_id}/body.txt").text

    def get_message_html_by_id(self, message_id: str) -> str:
        return self._client.get(f"/inboxes/{self.inbox_id}/messages/{message_id}/body.html").text

    def _select(self, matches: List[MailboxMessage]) -> MailboxMessage:
        if self.newest_first:
            return max(matches, key=lambda message: message.sent_at_time)
        return matches[0]

    def _matching_id(self, messages: List[MailboxMessage], email: str, subject: str) -> str:
        matches = find_matching_messages(messages, email, subject)
        if not matches:
            raise MessageNotFound(
                f'Email sent to "{email}" with subject "{subject}" was not found in Mailtrap'
            )
        return self._select(matches).id

    def get_latest_message_id_by_subject(self, email: str, subject: str) -> str:
        """
        Find the id of the latest message sent to ``email`` with ``subject``.

        Raises:
            RetryExhausted: If no matching message appears within the budget
        """
        found: Dict[str, Optional[str]] = {'id': None}

        # Delivery goes through SNS and SMTP, nothing to observe until it lands
        wait(self.grace_period_ms)

        def ready() -> bool:
            found['id'] = self._matching_id(self.get_all_messages(), email, subject)
            return True

        retry_until(
            ready,
            attempt_limit=self.poll_policy.attempt_limit,
            delay_ms=self.poll_policy.delay_ms,
            description=f'Mailtrap message to "{email}" with subject "{subject}"'
        )

        log_safe("Found Mailtrap message", {'id': found['id'], 'subject': subject})
        return found['id']

    def get_latest_message_text_by_subject(self, email: str, subject: str) -> str:
        message_id = self.get_latest_message_id_by_subject(email, subject)
        return self.get_message_text_by_id(message_id)

    def get_latest_message_html_by_subject(self, email: str, subject: str) -> str:
        message_id = self.get_latest_message_id_by_subject(email, subject)
        return self.get_message_html_by_id(message_id)

    # ==========================================================================
    # asyncio variants
    # ==========================================================================

    async def get_latest_message_id_by_subject_async(self, email: str, subject: str) -> str:
        """Same contract as get_latest_message_id_by_subject, without blocking the event loop."""
        found: Dict[str, Optional[str]] = {'id': None}

        await wait_async(self.grace_period_ms)

        async def ready() -> bool:
            messages = await asyncio.to_thread(self.get_all_messages)
            found['id'] = self._matching_id(messages, email, subject)
            return True

        await retry_until_async(
            ready,
            attempt_limit=self.poll_policy.attempt_limit,
            delay_ms=self.poll_policy.delay_ms,
            description=f'Mailtrap message to "{email}" with subject "{subject}"'
        )

        log_safe("Found Mailtrap message", {'id': found['id'], 'subject': subject})
        return found['id']

    async def get_latest_message_text_by_subject_async(self, email: str, subject: str) -> str:
        message_id = await self.get_latest_message_id_by_subject_async(email, subject)
        return await asyncio.to_thread(self.get_message_text_by_id, message_id)

    async def get_latest_message_html_by_subject_async(self, email: str, subject: str) -> str:
        message_id = await self.get_latest_message_id_by_subject_async(email, subject)
        return await asyncio.to_thread(self.get_message_html_by_id, message_id)

    def close(self) -> None:
        self._client.close()
