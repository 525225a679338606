"""Repeat keys and occurrence identifiers.

A repeat key names a repeat *definition*; it is the member stored in the
repeat registry. Format version 1 joins five fields with ``:``::

    <name>:<job id>:<end date millis>:<tz>:<pattern or every>

Absent fields are empty strings. Everything after the fourth delimiter is
the pattern, so patterns may contain ``:`` while the other fields may not.
An ``every`` interval is stored as its decimal string and decodes into
``pattern``; the two modes cannot be told apart from the key alone.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional
import hashlib

from chronorepeat.models import RepeatOptions

KEY_FORMAT_VERSION = 1
KEY_DELIMITER = ":"
KEY_FIELDS = 5


def digest(value: str, algorithm: str = "md5") -> str:
    """Hex digest used to bound identifier length; not a security boundary."""
    return hashlib.new(algorithm, value.encode("utf-8")).hexdigest()


@dataclass(frozen=True)
class RepeatKey:
    """Structured identity of a repeat definition."""

    name: str
    job_id: Optional[str] = None
    end_date: Optional[int] = None
    tz: Optional[str] = None
    pattern: Optional[str] = None

    @classmethod
    def from_options(cls, name: str, repeat: RepeatOptions) -> "RepeatKey":
        pattern = repeat.effective_pattern
        if not pattern and repeat.every:
            pattern = str(repeat.every)
        return cls(
            name=name,
            job_id=repeat.job_id or None,
            end_date=repeat.end_date,
            tz=repeat.tz or None,
            pattern=pattern or None
        )

    def encode(self) -> str:
        return KEY_DELIMITER.join([
            self.name,
            self.job_id or "",
            str(self.end_date) if self.end_date is not None else "",
            self.tz or "",
            self.pattern or ""
        ])

    @classmethod
    def decode(cls, key: str) -> "RepeatKey":
        parts = key.split(KEY_DELIMITER)
        parts += [""] * (KEY_FIELDS - len(parts))
        try:
            end_date = int(parts[2]) if parts[2] else None
        except ValueError:
            end_date = None
        return cls(
            name=parts[0],
            job_id=parts[1] or None,
            end_date=end_date,
            tz=parts[3] or None,
            pattern=KEY_DELIMITER.join(parts[4:]) or None
        )

    def to_dict(self, next_millis: Optional[int] = None) -> Dict[str, Any]:
        return {
            "key": self.encode(),
            "name": self.name,
            "id": self.job_id,
            "end_date": self.end_date,
            "tz": self.tz,
            "pattern": self.pattern,
            "next": next_millis
        }


def get_repeat_key(name: str, repeat: RepeatOptions) -> str:
    return RepeatKey.from_options(name, repeat).encode()


def get_repeat_job_id(
    name: str,
    next_millis: Any,
    namespace: str,
    job_id: Optional[str] = None,
    algorithm: str = "md5"
) -> str:
    """Identifier of one occurrence: ``repeat:<digest>:<next millis>``.

    ``namespace`` is the digest of the repeat key. Passing an empty string
    for ``next_millis`` yields the prefix shared by every occurrence of the
    definition, which is what removal works from.
    """
    checksum = digest(f"{name}{job_id or ''}{namespace}", algorithm)
    return f"repeat:{checksum}:{next_millis}"
