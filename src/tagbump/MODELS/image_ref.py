"""
Models representing image references found in a compose file.
"""
from typing import ClassVar
from pydantic import BaseModel, ConfigDict

QUOTES = ("'", '"')


class ImageRef(BaseModel):
    """
    A single `repository:tag` image reference.

    Examples:
        - kong -> kong:latest
        - supabase/postgres:15.8.1 -> supabase/postgres:15.8.1
        - localhost:5000/app -> localhost:5000/app:latest
        - ghcr.io/coollabsio/coolify:4.0 -> ghcr.io/coollabsio/coolify:4.0
    """
    model_config = ConfigDict(frozen=True)

    repository: str
    tag: str = "latest"

    DEFAULT_TAG: ClassVar[str] = "latest"

    @classmethod
    def parse(cls, value: str) -> "ImageRef":
        """
        Parse the value of an `image:` declaration.

        Args:
            value: Raw value, optionally wrapped in single or double quotes.

        Returns:
            Parsed ImageRef.

        Raises:
            ValueError: If the value or its repository part is empty.
        """
        value = value.strip()
        if len(value) >= 2 and value[0] in QUOTES and value[-1] == value[0]:
            value = value[1:-1].strip()

        if not value:
            raise ValueError("Empty image reference")

        repository, tag = value, cls.DEFAULT_TAG
        if ":" in value:
            before_colon, _, after_colon = value.rpartition(":")
            # A slash after the colon means the colon belongs to a registry port
            if "/" not in after_colon:
                repository = before_colon
                tag = after_colon or cls.DEFAULT_TAG

        if not repository:
            raise ValueError(f"No repository in image reference: {value!r}")

        return cls(repository=repository, tag=tag)

    def with_tag(self, tag: str) -> "ImageRef":
        """Return a copy of this reference pointing at another tag."""
        return ImageRef(repository=self.repository, tag=tag)

    def __str__(self) -> str:
        return f"{self.repository}:{self.tag}"
