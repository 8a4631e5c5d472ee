"""Text extracted from a URL before summarisation."""

from __future__ import annotations

from pydantic import BaseModel


class SourceText(BaseModel):
    model_config = {"frozen": True}

    text: str
    title: str | None = None

    def render(self) -> str:
        """Return the text with a markdown title heading when one is known."""
        if self.title:
            return f"# {self.title}\n\n{self.text}"
        return self.text
