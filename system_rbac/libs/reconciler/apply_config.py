"""
Apply Configuration Extraction

The kubernetes Python client has no typed apply configurations, so this module
rebuilds the part of an observed object that a given field manager owns, from
``metadata.managedFields``. The result is a plain dict that can be sent back
as a server-side apply patch.

fieldsV1 path elements:
    f:<name>   a field of a map or struct
    k:<json>   a list item selected by its key fields
    v:<json>   a set member selected by value
    i:<index>  a list item selected by position
    .          the enclosing element itself
"""

import copy
import json
import logging
from functools import lru_cache
from typing import Any, Dict, Iterable, List, Optional, Tuple

from kubernetes import client

from ..core.constants import ApplyConstants, KubernetesConstants
from ..core.exceptions import ExtractionError

logger = logging.getLogger(__name__)


@lru_cache(maxsize=None)
def _serializer() -> client.ApiClient:
    return client.ApiClient()


def to_dict(obj: Any) -> Any:
    """Convert a kubernetes model object to its JSON form (camelCase keys)."""
    if isinstance(obj, dict):
        return obj
    return _serializer().sanitize_for_serialization(obj)


def extract_cluster_role_binding(binding: Any, field_manager: str,
                                 operation: str = ApplyConstants.APPLY_OPERATION) -> Dict[str, Any]:
    """
    Extract the apply configuration owned by ``field_manager`` from an observed ClusterRoleBinding

    Only managedFields entries with the given operation and no subresource are
    considered. When the manager owns nothing, the configuration carries only
    apiVersion, kind and metadata.name.

    Args:
        binding: Observed ClusterRoleBinding (V1ClusterRoleBinding or dict)
        field_manager: Field manager whose ownership is extracted
        operation: managedFields operation to match

    Returns:
        Dict apply configuration

    Raises:
        ExtractionError: If the observed object is malformed
    """
    return extract_owned_fields(
        binding,
        field_manager,
        api_version=KubernetesConstants.RBAC_API_VERSION,
        kind=KubernetesConstants.CLUSTER_ROLE_BINDING_KIND,
        operation=operation,
    )


def extract_owned_fields(obj: Any, field_manager: str, api_version: str, kind: str,
                         operation: str = ApplyConstants.APPLY_OPERATION) -> Dict[str, Any]:
    """Extract the fields of ``obj`` owned by ``field_manager`` into an apply configuration."""
    observed = to_dict(obj)
    if not isinstance(observed, dict):
        raise ExtractionError(f"Observed {kind} is not an object: {type(obj).__name__}")

    metadata = observed.get('metadata')
    if not isinstance(metadata, dict) or not metadata.get('name'):
        raise ExtractionError(f"Observed {kind} has no metadata.name")

    apply_config = {
        'apiVersion': api_version,
        'kind': kind,
        'metadata': {'name': metadata['name']},
    }

    managed_fields = metadata.get('managedFields') or []
    if not isinstance(managed_fields, list):
        raise ExtractionError(f"{kind} {metadata['name']}: metadata.managedFields must be a list")

    for entry in managed_fields:
        if not isinstance(entry, dict):
            raise ExtractionError(f"{kind} {metadata['name']}: malformed managedFields entry")
        if entry.get('manager') != field_manager or entry.get('operation') != operation:
            continue
        if entry.get('subresource'):
            continue

        fields_type = entry.get('fieldsType')
        if fields_type and fields_type != ApplyConstants.FIELDS_V1_TYPE:
            raise ExtractionError(f"{kind} {metadata['name']}: unsupported fieldsType {fields_type!r}")

        fields_v1 = entry.get('fieldsV1')
        if fields_v1 is None:
            continue
        if not isinstance(fields_v1, dict):
            raise ExtractionError(f"{kind} {metadata['name']}: fieldsV1 must be an object")

        owned = _extract_fields(observed, fields_v1, "")
        _merge_into(apply_config, owned)

    logger.debug(f"Extracted apply configuration for {kind} {metadata['name']} "
                 f"(manager {field_manager}): {sorted(apply_config)}")
    return apply_config


def _extract_fields(live: Any, fields: Dict[str, Any], path: str) -> Dict[str, Any]:
    if not isinstance(live, dict):
        raise ExtractionError(f"{path or '<root>'}: owned fields recorded on a non-object value")

    result = {}
    for element, children in fields.items():
        if element == ApplyConstants.SELF_MARKER:
            continue
        if not element.startswith(ApplyConstants.FIELD_PREFIX):
            raise ExtractionError(f"{path or '<root>'}: unexpected path element {element!r}")

        name = element[len(ApplyConstants.FIELD_PREFIX):]
        if name not in live or live[name] is None:
            # Owned once, since removed from the live object
            continue

        child_path = f"{path}.{name}" if path else name
        result[name] = _extract_value(live[name], children, child_path)
    return result


def _extract_value(value: Any, children: Any, path: str) -> Any:
    if not isinstance(children, dict):
        raise ExtractionError(f"{path}: fieldsV1 node must be an object")

    nested = {k: v for k, v in children.items() if k != ApplyConstants.SELF_MARKER}
    if not nested:
        return copy.deepcopy(value)
    if isinstance(value, dict):
        return _extract_fields(value, nested, path)
    if isinstance(value, list):
        return _extract_items(value, nested, path)
    raise ExtractionError(f"{path}: owned sub-fields recorded on a scalar value")


def _extract_items(items: List[Any], fields: Dict[str, Any], path: str) -> List[Any]:
    selected: List[Tuple[int, Any]] = []

    for element, children in fields.items():
        if element.startswith(ApplyConstants.KEY_PREFIX):
            key = _parse_json(element[len(ApplyConstants.KEY_PREFIX):], path)
            if not isinstance(key, dict):
                raise ExtractionError(f"{path}: list key must be an object, got {element!r}")
            for index, item in enumerate(items):
                if isinstance(item, dict) and all(item.get(k) == v for k, v in key.items()):
                    extracted = _extract_value(item, children, f"{path}[{element}]")
                    if isinstance(extracted, dict):
                        # Key fields identify the item and are always part of it
                        extracted = {**key, **extracted}
                    selected.append((index, extracted))
                    break

        elif element.startswith(ApplyConstants.VALUE_PREFIX):
            member = _parse_json(element[len(ApplyConstants.VALUE_PREFIX):], path)
            if member in items:
                selected.append((items.index(member), member))

        elif element.startswith(ApplyConstants.INDEX_PREFIX):
            try:
                index = int(element[len(ApplyConstants.INDEX_PREFIX):])
            except ValueError as e:
                raise ExtractionError(f"{path}: invalid list index {element!r}") from e
            if 0 <= index < len(items):
                selected.append((index, _extract_value(items[index], children, f"{path}[{index}]")))

        else:
            raise ExtractionError(f"{path}: unexpected list path element {element!r}")

    selected.sort(key=lambda pair: pair[0])
    return [value for _, value in selected]


def _parse_json(text: str, path: str) -> Any:
    try:
        return json.loads(text)
    except ValueError as e:
        raise ExtractionError(f"{path}: unparsable fieldsV1 key {text!r}") from e


def _merge_into(target: Dict[str, Any], source: Dict[str, Any]) -> None:
    for key, value in source.items():
        if isinstance(value, dict) and isinstance(target.get(key), dict):
            _merge_into(target[key], value)
        else:
            target[key] = value


def subject_identity(subject: Dict[str, Any]) -> Tuple[str, str, str]:
    """Identity of a binding subject: (kind, name, namespace)."""
    return subject.get('kind') or '', subject.get('name') or '', subject.get('namespace') or ''


def merge_subjects(*subject_lists: Optional[Iterable[Any]]) -> List[Dict[str, Any]]:
    """
    Union subject lists by identity, keeping the first occurrence and its position

    Args:
        *subject_lists: Lists of subjects (RbacV1Subject models or dicts); None is skipped

    Returns:
        List of subject dicts
    """
    merged = []
    seen = set()
    for subjects in subject_lists:
        for subject in subjects or []:
            subject = to_dict(subject)
            identity = subject_identity(subject)
            if identity in seen:
                continue
            seen.add(identity)
            merged.append(subject)
    return merged
