import re
import unicodedata
from datetime import datetime
from typing import Any, Dict, Union

from bson import ObjectId


def slugify(value: str) -> str:
    normalized = " ".join(str(value).split()).lower()
    ascii_name = (
        unicodedata.normalize("NFKD", normalized)
        .encode("ascii", "ignore")
        .decode("ascii")
    )
    slug = re.sub(r"[^a-z0-9]+", "-", ascii_name).strip("-")
    if not slug:
        # Names with no ASCII letters keep their own characters
        slug = "-".join(normalized.split())
    return slug


def to_object_id(value: Any) -> Union[ObjectId, Any]:
    """Coerce a path/body id to ObjectId; malformed ids pass through and simply match nothing."""
    if isinstance(value, ObjectId):
        return value
    if isinstance(value, str) and ObjectId.is_valid(value):
        return ObjectId(value)
    return value


def _serialize_value(value: Any) -> Any:
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, dict):
        return serialize_doc(value)
    if isinstance(value, list):
        return [_serialize_value(v) for v in value]
    return value


def serialize_doc(doc: Dict[str, Any]):
    if not doc:
        return doc
    out: Dict[str, Any] = {}
    for k, v in doc.items():
        if k == "_id":
            out["id"] = str(v)
        elif isinstance(v, bytes):
            continue
        else:
            out[k] = _serialize_value(v)
    return out
