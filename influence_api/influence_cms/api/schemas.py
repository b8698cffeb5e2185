from __future__ import annotations

from typing import Dict, Optional

from pydantic import BaseModel


class StatusResponse(BaseModel):
    status: str = "ok"


class FormRequest(BaseModel):
    name: str = ""
    phone: str = ""
    description: str = ""


class TranslateRequest(BaseModel):
    text: str = ""
    lang: str = ""


class TranslateResponse(BaseModel):
    original: str
    translated: Optional[str] = None
    translations: Optional[Dict[str, str]] = None
    lang: str

    def to_payload(self) -> dict:
        # Empty results are left out of the body entirely.
        data = self.model_dump()
        if not data["translated"]:
            data.pop("translated")
        if not data["translations"]:
            data.pop("translations")
        return data
