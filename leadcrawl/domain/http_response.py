from typing import NamedTuple, Optional


class HttpResponse(NamedTuple):
    """Status, body and Content-Type of a plain HTTP page load."""
    status_code: int
    text: str
    content_type: Optional[str] = None

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 400

    @property
    def is_html(self) -> bool:
        """A missing Content-Type counts as HTML."""
        return self.content_type is None or "html" in self.content_type.lower()
