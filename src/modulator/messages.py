"""Notification and loader messages (English only)."""

from __future__ import annotations

from typing import Dict


MESSAGES: Dict[str, str] = {
    "failed_to_get": "An error occurred while retrieving the data.",
    "failed_to_create": "An error occurred while creating the data.",
    "failed_to_patch": "An error occurred while updating the record.",
    "failed_on_delete": "An error occurred while deleting the record.",
    "success_on_create": "New record successfully created.",
    "success_on_patch": "Record successfully updated.",
    "success_on_delete": "Record deleted.",
    "default_loading_message": "Loading...",
    "loading_many": "Loading {name}...",
    "loading_one": "Loading {name}...",
    "saving": "Saving {name}",
    "deleting": "Deleting {name}",
    "cleaning": "Cleaning {name}...",
}


def message(key: str, messages: Dict[str, str] | None = None, **params: str) -> str:
    catalogue = messages if messages is not None else MESSAGES
    template = catalogue.get(key) or MESSAGES.get(key) or key
    return template.format(**params) if params else template
