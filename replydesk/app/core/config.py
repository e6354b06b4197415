"""Environment-driven settings for mail accounts, the AI client and signatures.

Values are read at call time (not import time) so a running process or a test
can change the environment without reloading modules.

Account naming: the ``default`` account reads un-prefixed keys (``IMAP_HOST``),
any other account ``<name>`` reads ``IMAP_<NAME>_HOST`` etc.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Optional
import os

DEFAULT_AI_URL = 'https://api.openai.com/v1/chat/completions'

# logical account -> outbound mailer key
MAILER_KEYS = {
    'info': 'smtp1',
    'damian': 'smtp2',
}

_MAILER_PREFIX = {
    'smtp': 'MAIL_',
    'smtp1': 'SMTP1_MAIL_',
    'smtp2': 'SMTP2_MAIL_',
}


@dataclass
class ImapAccount:
    name: str
    host: Optional[str]
    port: int
    username: Optional[str]
    password: Optional[str]
    encryption: str = 'ssl'
    timeout: float = 30.0
    message_limit: int = 50
    folder: str = 'INBOX'

    @property
    def configured(self) -> bool:
        return bool(self.host and self.username and self.password)


@dataclass
class MailerConfig:
    key: str
    host: str
    port: int
    username: Optional[str]
    password: Optional[str]
    encryption: Optional[str]
    from_address: str
    from_name: str
    timeout: float = 30.0


@dataclass
class AISettings:
    url: str
    api_key: Optional[str]
    model: str
    temperature: float
    timeout: float


def default_account() -> str:
    return os.getenv('IMAP_DEFAULT_ACCOUNT', 'default')


def _imap_prefix(account: str) -> str:
    if account == 'default':
        return 'IMAP_'
    return f"IMAP_{account.upper()}_"


def imap_account(account: Optional[str] = None) -> ImapAccount:
    name = account or default_account()
    p = _imap_prefix(name)
    return ImapAccount(
        name=name,
        host=os.getenv(f'{p}HOST'),
        port=int(os.getenv(f'{p}PORT', '993')),
        username=os.getenv(f'{p}USERNAME'),
        password=os.getenv(f'{p}PASSWORD'),
        encryption=os.getenv(f'{p}ENCRYPTION', 'ssl').lower(),
        timeout=float(os.getenv(f'{p}TIMEOUT', '30')),
        message_limit=int(os.getenv(f'{p}MESSAGE_LIMIT', '50')),
        folder=os.getenv(f'{p}FOLDER', 'INBOX'),
    )


def resolve_mailer_key(account: str) -> str:
    return MAILER_KEYS.get(account, 'smtp')


def mailer_config(account: str) -> MailerConfig:
    key = resolve_mailer_key(account)
    p = _MAILER_PREFIX[key]
    encryption = os.getenv(f'{p}ENCRYPTION', 'ssl' if key == 'smtp' else 'tls')
    return MailerConfig(
        key=key,
        host=os.getenv(f'{p}HOST', '127.0.0.1'),
        port=int(os.getenv(f'{p}PORT', '465' if encryption == 'ssl' else '587')),
        username=os.getenv(f'{p}USERNAME'),
        password=os.getenv(f'{p}PASSWORD'),
        encryption=(encryption or '').lower() or None,
        # fall back to the global sender like the primary mailer does
        from_address=os.getenv(f'{p}FROM_ADDRESS', os.getenv('MAIL_FROM_ADDRESS', 'hello@example.com')),
        from_name=os.getenv(f'{p}FROM_NAME', os.getenv('MAIL_FROM_NAME', 'Example')),
        timeout=float(os.getenv('MAIL_TIMEOUT', '30')),
    )


def signature_for(account: str) -> Optional[str]:
    return os.getenv(f'SIGNATURE_{account.upper()}') or os.getenv('SIGNATURE_DEFAULT')


def ai_settings() -> AISettings:
    return AISettings(
        url=os.getenv('AI_API_URL', DEFAULT_AI_URL),
        api_key=os.getenv('AI_API_KEY'),
        model=os.getenv('AI_MODEL', 'gpt-4o'),
        temperature=float(os.getenv('AI_TEMPERATURE', '0.7')),
        timeout=float(os.getenv('AI_TIMEOUT', '60')),
    )
