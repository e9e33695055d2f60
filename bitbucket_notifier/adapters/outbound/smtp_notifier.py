import asyncio
import html
import logging
import re
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formatdate

from bitbucket_notifier.domain.digest import DigestMessage

logger = logging.getLogger(__name__)

# EMAIL_PROVIDER 값 → (SMTP 호스트, 포트)
SMTP_PROVIDERS: dict[str, tuple[str, int]] = {
    "gmail": ("smtp.gmail.com", 587),
    "outlook": ("smtp-mail.outlook.com", 587),
    "hotmail": ("smtp-mail.outlook.com", 587),
    "office365": ("smtp.office365.com", 587),
    "yahoo": ("smtp.mail.yahoo.com", 587),
}

_SENDER_NAME = "Bitbucket Notifier"


def resolve_smtp_endpoint(provider: str, host: str = "", port: int | None = None) -> tuple[str, int]:
    """명시적 호스트 설정을 우선하고, 없으면 프로바이더 이름으로 SMTP 주소를 결정합니다."""
    if host:
        return host, port or 587
    key = (provider or "gmail").strip().lower()
    if key not in SMTP_PROVIDERS:
        raise ValueError(
            f"알 수 없는 메일 프로바이더: '{provider}'. 사용 가능: {list(SMTP_PROVIDERS)}"
        )
    default_host, default_port = SMTP_PROVIDERS[key]
    return default_host, port or default_port


def html_to_plaintext(body: str) -> str:
    """메일 대체 본문용 단순 HTML → 텍스트 변환"""
    text = re.sub(r"<br\s*/?>", "\n", body)
    text = re.sub(r"<hr\s*/?>", "\n---\n", text)
    text = re.sub(r"</(p|tr|h[1-6]|pre)>", "\n", text)
    text = re.sub(r"<[^>]+>", "", text)
    text = html.unescape(text)
    text = re.sub(r"\n\s*\n", "\n\n", text)
    return text.strip()


class SmtpNotifier:
    """SMTP(STARTTLS)로 다이제스트 메일을 발송하는 Outbound Adapter"""

    def __init__(self, host: str, port: int, user: str, password: str, timeout: float = 30.0):
        self.host = host
        self.port = port
        self.user = user
        self.password = password
        self.timeout = timeout

    async def send(self, message: DigestMessage) -> bool:
        """다이제스트를 발송합니다. 실패는 로그만 남기고 False 를 반환합니다."""
        logger.info("📧 메일 발송 시작: to=%s, subject=%s", message.recipient, message.subject)
        try:
            mime = self._build_mime(message)
            await asyncio.to_thread(self._deliver, mime)
        except Exception as e:
            logger.exception("❌ 메일 발송 실패: %s", str(e))
            return False

        logger.info("✅ 메일 발송 완료: %s (커밋 %d건)", message.recipient, message.commit_count)
        return True

    def _build_mime(self, message: DigestMessage) -> MIMEMultipart:
        mime = MIMEMultipart("alternative")
        mime["Subject"] = message.subject
        mime["From"] = f'"{_SENDER_NAME}" <{message.sender}>'
        mime["To"] = message.recipient
        mime["Date"] = formatdate(localtime=True)
        mime.attach(MIMEText(html_to_plaintext(message.html_body), "plain", "utf-8"))
        mime.attach(MIMEText(message.html_body, "html", "utf-8"))
        return mime

    def _deliver(self, mime: MIMEMultipart) -> None:
        with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as server:
            server.starttls()
            if self.user:
                server.login(self.user, self.password)
            server.send_message(mime)
