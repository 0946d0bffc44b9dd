import mmh3
import hashlib
import jsonpickle
from datetime import date, datetime, timezone
from typing import Any


def now() -> str:
    return datetime.now(timezone.utc).isoformat()


def sort_dict_keys(d):
    """Recursively sort dictionary keys and handle nested structures.

    Args:
        d: Data structure (dict, list, or primitive type)

    Returns:
        Sorted version of the data structure
    """
    if isinstance(d, dict):
        return {key: sort_dict_keys(value) for key, value in sorted(d.items())}
    elif isinstance(d, list):
        return [sort_dict_keys(item) for item in d]
    else:
        return d


def canonicalize_dict(data):
    """
    Returns a canonical JSON representation of a dictionary.

    Keys are sorted recursively so the representation stays the same
    regardless of insertion order.
    """
    return jsonpickle.dumps(sort_dict_keys(data), unpicklable=False)


def compute_hash(data: Any) -> str:
    """Compute a short, stable murmur3/sha256 digest of a dict or string."""
    if isinstance(data, dict):
        _data = canonicalize_dict(data)
    elif isinstance(data, str):
        _data = data.encode()
    else:
        raise ValueError(f"Hash of {type(data)} is not supported.")
    murmur_str = str(mmh3.hash128(_data))
    full_hash = hashlib.sha256(murmur_str.encode("utf-8")).hexdigest()
    # First 16 characters keep annotations readable
    return full_hash[:16]


def upsert_condition(conds, newc):
    """In-memory merge by .type. Only bump lastTransitionTime when status flips."""
    conds = list(conds or [])
    for i, c in enumerate(conds):
        if c.get("type") == newc["type"]:
            ltt = c.get("lastTransitionTime") or now()
            if c.get("status") != newc["status"]:
                ltt = now()
            conds[i] = {**c, **newc, "lastTransitionTime": ltt}
            break
    else:
        conds.append({**newc, "lastTransitionTime": now()})
    return conds


def to_api_dict(obj: Any) -> Any:
    """Serialize a kubernetes_asyncio model into its JSON (camelCase) form.

    Attributes that are None are omitted, like the API client does when it
    sends a body. Plain dicts and lists are walked as-is, so raw affinity or
    toleration dicts serialize the same way as their model counterparts.
    """
    if obj is None:
        return None
    if isinstance(obj, (str, int, float, bool)):
        return obj
    if isinstance(obj, (list, tuple)):
        return [to_api_dict(item) for item in obj]
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    if isinstance(obj, dict):
        return {key: to_api_dict(value) for key, value in obj.items()}
    return {
        obj.attribute_map[attr]: to_api_dict(getattr(obj, attr))
        for attr in obj.openapi_types
        if getattr(obj, attr) is not None
    }
