from dataclasses import dataclass


@dataclass(frozen=True)
class DigestMessage:
    """발송할 다이제스트 메일"""
    subject: str
    html_body: str
    recipient: str
    sender: str
    commit_count: int


@dataclass(frozen=True)
class DigestTemplate:
    """다이제스트 제목/본문 템플릿"""
    subject: str
    body: str
    description: str = ""
