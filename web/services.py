"""Response shaping for the HTTP API"""
from typing import Dict, Any


def format_token(row: Dict[str, Any]) -> Dict[str, Any]:
    """Map a token store row onto the API token shape"""
    metadata_json = row.get("metadata_json")
    if not isinstance(metadata_json, dict):
        metadata_json = {}

    return {
        "address": row["address"],
        "name": row.get("name") or row.get("symbol") or "Unknown",
        "symbol": row.get("symbol") or "UNKNOWN",
        "description": row.get("description"),
        "launchDate": row.get("launch_date"),
        "image": row.get("image_uri"),
        "ath": row.get("ath"),
        "ath_last24hrs": row.get("ath_last24hrs"),
        "category": row.get("category"),
        "twitter": row.get("twitter") or metadata_json.get("twitter"),
        "website": row.get("website") or metadata_json.get("website"),
        "telegram": row.get("telegram") or metadata_json.get("telegram"),
        "enriched": bool(row.get("enriched")),
        "updatedAt": row.get("updated_at"),
    }


def error_body(error: str, exc: BaseException) -> Dict[str, Any]:
    """Error payload returned with 500 responses"""
    return {
        "error": error,
        "details": str(exc) or exc.__class__.__name__,
    }
