"""
Declarative upload spec: which form fields carry uploads, how large a
stored original may be, and which thumbnails are derived from it.

Two input styles are accepted by ``UploadSpec.from_dict``::

    {"photo": [{"name": "photo_thumb", "w": 100, "h": 100}]}

    {"photo": {"downsize": {"w": 1600},
               "thumbs": [{"name": "photo_thumb", "w": 100, "h": 100}]}}
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple

from uploader.common.errors import InvalidSpec


@dataclass(frozen=True)
class Bounds:
    """Maximum width and/or height. At least one is set."""
    max_width: Optional[int] = None
    max_height: Optional[int] = None


@dataclass(frozen=True)
class ThumbnailRule(Bounds):
    name: str = ""


@dataclass(frozen=True)
class FieldRule:
    name: str
    downsize: Optional[Bounds] = None
    thumbnails: Tuple[ThumbnailRule, ...] = ()


def _bound(raw: Mapping[str, Any], short: str, long: str, where: str) -> Optional[int]:
    value = raw.get(short, raw.get(long))
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise InvalidSpec(f"{where}: '{short}' must be a positive integer, got {value!r}")
    return value


def _parse_bounds(raw: Any, where: str) -> Tuple[Optional[int], Optional[int]]:
    if not isinstance(raw, Mapping):
        raise InvalidSpec(f"{where}: expected a mapping, got {type(raw).__name__}")
    width = _bound(raw, "w", "max_width", where)
    height = _bound(raw, "h", "max_height", where)
    if width is None and height is None:
        raise InvalidSpec(f"{where}: at least one of 'w' or 'h' is required")
    return width, height


@dataclass(frozen=True)
class UploadSpec:
    """Ordered mapping of upload field name to its rule."""
    fields: Dict[str, FieldRule] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "UploadSpec":
        """
        Build and validate a spec.

        Raises:
            InvalidSpec: On malformed rules or duplicate names
        """
        if not isinstance(raw, Mapping) or not raw:
            raise InvalidSpec("Upload spec must be a non-empty mapping")

        fields: Dict[str, FieldRule] = {}
        seen: set = set()

        def claim(name: Any, where: str) -> str:
            if not isinstance(name, str) or not name:
                raise InvalidSpec(f"{where}: name must be a non-empty string")
            if name in seen:
                raise InvalidSpec(f"Duplicate upload name '{name}'")
            seen.add(name)
            return name

        for field_name, value in raw.items():
            claim(field_name, "field")
            downsize = None
            if isinstance(value, Mapping):
                thumbs_raw = value.get("thumbs", [])
                if value.get("downsize") is not None:
                    w, h = _parse_bounds(value["downsize"], f"{field_name}.downsize")
                    downsize = Bounds(max_width=w, max_height=h)
            elif value is None:
                thumbs_raw = []
            else:
                thumbs_raw = value

            if not isinstance(thumbs_raw, (list, tuple)):
                raise InvalidSpec(f"{field_name}: thumbnails must be a list")

            thumbs: List[ThumbnailRule] = []
            for i, thumb in enumerate(thumbs_raw):
                where = f"{field_name}.thumbs[{i}]"
                w, h = _parse_bounds(thumb, where)
                thumbs.append(ThumbnailRule(
                    name=claim(thumb.get("name"), where), max_width=w, max_height=h))

            fields[field_name] = FieldRule(
                name=field_name, downsize=downsize, thumbnails=tuple(thumbs))

        return cls(fields=fields)

    def __iter__(self) -> Iterator[FieldRule]:
        return iter(self.fields.values())

    def __contains__(self, name: str) -> bool:
        return name in self.fields

    def rule_for(self, field_name: str) -> FieldRule:
        try:
            return self.fields[field_name]
        except KeyError:
            raise InvalidSpec(f"No upload field named '{field_name}'") from None

    def owner_of(self, thumb_name: str) -> Optional[FieldRule]:
        """Return the field rule a thumbnail name belongs to."""
        for rule in self.fields.values():
            if any(t.name == thumb_name for t in rule.thumbnails):
                return rule
        return None

    def names(self) -> List[str]:
        """All field names, then all thumbnail names."""
        primaries = list(self.fields)
        thumbs = [t.name for rule in self.fields.values() for t in rule.thumbnails]
        return primaries + thumbs
