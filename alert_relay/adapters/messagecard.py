# alert_relay/adapters/messagecard.py
from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field


class Fact(BaseModel):
    """
    카드 섹션의 한 줄.
    ex) { "name": "Host", "value": "ACME-SRV-DB01" }
    """

    name: str
    value: str


class Section(BaseModel):
    """
    카드의 섹션 하나 (이벤트 한 건).
    heading 은 배치 메시지에서만 사용 ("--- Event 1 ---").
    """

    heading: Optional[str] = None
    facts: List[Fact] = Field(default_factory=list)
    note: Optional[str] = None

    def get_fact(self, name: str) -> Optional[str]:
        for fact in self.facts:
            if fact.name == name:
                return fact.value
        return None


class AlertCard(BaseModel):
    """
    목적지에 독립적인 구조화 메시지.

    - formatter 가 만들고, 전송 직전에 to_text() 로 채팅용 텍스트로 렌더링한다.
    - 채팅 마크업: *굵게*, _기울임_
    """

    title: str
    sections: List[Section] = Field(default_factory=list)

    def get_fact(self, name: str) -> Optional[str]:
        """
        sections[].facts[] 중에서 name 이 일치하는 첫 번째 value 를 찾아준다.
        ex) get_fact("Host") -> "ACME-SRV-DB01"
        """
        for section in self.sections:
            value = section.get_fact(name)
            if value is not None:
                return value
        return None

    def to_text(self) -> str:
        blocks = []
        for section in self.sections:
            lines = []
            if section.heading:
                lines.append(f"*{section.heading}*")
            lines.extend(f"*{fact.name}:* {fact.value}" for fact in section.facts)
            if section.note:
                lines.append(f"_{section.note}_")
            blocks.append("\n".join(lines))

        text = f"*{self.title}*"
        if blocks:
            text += "\n\n" + "\n\n".join(blocks)
        return text
