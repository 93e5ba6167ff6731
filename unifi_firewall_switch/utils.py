"""
Utility functions for the UniFi firewall switch package.
"""

import inspect
import uuid
from typing import Any, Dict, List, Type, Optional, Tuple

from .logging import get_logger

logger = get_logger(__name__)

# Fixed namespace so that accessory UUIDs survive process restarts.
ACCESSORY_UUID_NAMESPACE = uuid.UUID("5b0f6f0e-3c1a-4e59-9a8e-2f1d7c4b6a10")


def map_api_data_to_model(
    data: Dict[str, Any], model_class: Type
) -> Tuple[Dict[str, Any], Dict[str, Any]]:
    """
    Maps API data to model fields, separating model fields from extra fields.

    Args:
        data: Input dictionary from API response
        model_class: The dataclass model to map data to

    Returns:
        Tuple containing (model_fields, extra_fields) where:
            - model_fields: Dictionary of fields that map to the model's attributes
            - extra_fields: Dictionary of extra fields that don't directly map to the model
    """
    signature = inspect.signature(model_class.__init__)
    valid_params = set(signature.parameters.keys())
    valid_params.discard("self")

    model_fields = {}
    extra_fields = {}

    for api_key, value in data.items():
        if api_key in valid_params:
            model_fields[api_key] = value
        else:
            extra_fields[api_key] = value

    return model_fields, extra_fields


def map_api_data_to_models(raw_results: List[Dict[str, Any]], model_class: Type) -> List[Any]:
    """
    Build model instances from a list of raw API objects.

    Objects that cannot be mapped (missing required fields, wrong types) are
    logged and skipped, so one malformed entry does not hide the others.

    Args:
        raw_results: Raw objects as returned by the controller.
        model_class: The dataclass model to build.

    Returns:
        List of model instances with `_extra_fields` populated.
    """
    models = []
    for item in raw_results:
        if not isinstance(item, dict):
            logger.warning(
                f"Skipping non-object entry while building {model_class.__name__}: {item!r}")
            continue
        model_fields, extra_fields = map_api_data_to_model(item, model_class)
        try:
            model = model_class(**model_fields)
        except TypeError as e:
            logger.error(
                f"Error creating {model_class.__name__} model from data: {item}. Error: {e}")
            continue
        if hasattr(model, "_extra_fields"):
            model._extra_fields = extra_fields
        models.append(model)
    return models


def unwrap_data_envelope(payload: Any) -> Optional[List[Any]]:
    """
    Normalize a controller response body into a list of objects.

    Legacy endpoints wrap results as ``{"meta": {...}, "data": [...]}`` while v2
    endpoints usually return the list (or a single object) directly.

    Args:
        payload: Decoded JSON body.

    Returns:
        List of objects, or None if the body carries no data.
    """
    if payload is None:
        return None
    if isinstance(payload, dict) and "data" in payload:
        payload = payload["data"]
        if payload is None:
            return None
    if isinstance(payload, list):
        return payload
    return [payload]


def generate_uuid(key: str) -> str:
    """
    Derive the accessory UUID for a stable identity key.

    The same key always yields the same UUID, across calls and across processes.

    Args:
        key: Namespaced identity, e.g. ``unifi9-policy-<id>``.

    Returns:
        Lower-case UUID string.
    """
    if not key:
        raise ValueError("Cannot derive an accessory UUID from an empty key")
    return str(uuid.uuid5(ACCESSORY_UUID_NAMESPACE, key))
