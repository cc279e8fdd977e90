"""
Status message localization.

Provides translation dictionaries for the status strings the engine emits.
Supports English (en) and German (de) locales.

Usage:
    from core.locales import format_message

    format_message("extracting-files", "de", item=3, total=10)
"""

from __future__ import annotations

from typing import Dict

# Type alias for translation dictionary
TranslationDict = Dict[str, str]

TRANSLATIONS: Dict[str, TranslationDict] = {
    "en": {
        "idling": "Idling",
        "no-files": "No files to list.",
        "filtering-files": "Filtering files {item}/{total}",
        "extracting-files": "Extracting files {item}/{total}",
        "all-extracted": "All files extracted.",
        "deleting-files": "Deleting files {item}/{total}",
        "deleted-files": "Deleted files.",
        "failed-deleting-file": "Failed to delete file: {error}",
        "failed-opening-file": "Failed to open file: {error}",
        "failed-listing-files": "Failed to list files: {error}",
        "swapped": "Swapped {asset_a} and {asset_b}",
        "copied": "Copied {asset_a} to {asset_b}",
        "error-sql-detection-title": "Could not find the cache database",
        "error-sql-detection-description": (
            "The rbx-storage.db database was not found in any known location. "
            "Images, models and sounds stored in it will not be listed."
        ),
        "confirmation-custom-sql-title": "Choose the database location?",
        "confirmation-custom-sql-description": (
            "Do you want to select the location of rbx-storage.db yourself?"
        ),
        "prompt-sql-location": "Path to rbx-storage.db: ",
    },
    "de": {
        "idling": "Leerlauf",
        "no-files": "Keine Dateien vorhanden.",
        "filtering-files": "Dateien werden gefiltert {item}/{total}",
        "extracting-files": "Dateien werden extrahiert {item}/{total}",
        "all-extracted": "Alle Dateien extrahiert.",
        "deleting-files": "Dateien werden gelöscht {item}/{total}",
        "deleted-files": "Dateien gelöscht.",
        "failed-deleting-file": "Datei konnte nicht gelöscht werden: {error}",
        "failed-opening-file": "Datei konnte nicht geöffnet werden: {error}",
        "failed-listing-files": "Dateien konnten nicht aufgelistet werden: {error}",
        "swapped": "{asset_a} und {asset_b} getauscht",
        "copied": "{asset_a} nach {asset_b} kopiert",
        "error-sql-detection-title": "Cache-Datenbank nicht gefunden",
        "error-sql-detection-description": (
            "Die Datenbank rbx-storage.db wurde an keinem bekannten Ort gefunden. "
            "Darin gespeicherte Bilder, Modelle und Sounds werden nicht aufgelistet."
        ),
        "confirmation-custom-sql-title": "Datenbank-Speicherort wählen?",
        "confirmation-custom-sql-description": (
            "Möchten Sie den Speicherort von rbx-storage.db selbst auswählen?"
        ),
        "prompt-sql-location": "Pfad zu rbx-storage.db: ",
    },
}

DEFAULT_LOCALE = "en"

# Supported locale codes
SUPPORTED_LOCALES = tuple(TRANSLATIONS.keys())


def get_translations(locale: str = "en") -> TranslationDict:
    """Return translation dict for locale, fallback to English."""
    return TRANSLATIONS.get(locale, TRANSLATIONS[DEFAULT_LOCALE])


def format_message(key: str, locale: str = DEFAULT_LOCALE, **kwargs) -> str:
    """Get a translation and format it with provided values.

    Args:
        key: Translation key
        locale: Locale code (e.g., "en", "de")
        **kwargs: Format arguments

    Returns:
        Formatted translation string, or key if not found
    """
    template = get_translations(locale).get(key)
    if template is None:
        template = TRANSLATIONS[DEFAULT_LOCALE].get(key, key)
    try:
        return template.format(**kwargs)
    except (KeyError, ValueError, IndexError):
        return template
