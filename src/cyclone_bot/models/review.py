"""Review result models."""

from dataclasses import dataclass, field

VALID_SIDES = ("LEFT", "RIGHT")


@dataclass
class ReviewComment:
    """A single line-anchored comment on the new version of a file."""

    path: str
    line: int
    body: str
    side: str = "RIGHT"

    def __post_init__(self) -> None:
        """Validate comment data."""
        if self.line < 1:
            raise ValueError(f"line must be >= 1, got {self.line}")
        if self.side not in VALID_SIDES:
            raise ValueError(f"side must be one of {VALID_SIDES}, got {self.side!r}")

    def to_github(self) -> dict[str, str | int]:
        """Draft review comment payload for the pull request reviews API."""
        return {
            "path": self.path,
            "line": self.line,
            "side": self.side,
            "body": self.body,
        }


@dataclass
class ReviewResult:
    """Summary body plus inline comments, in the order the model produced them."""

    summary: str
    comments: list[ReviewComment] = field(default_factory=list)

    @property
    def comment_count(self) -> int:
        """Number of inline comments."""
        return len(self.comments)
