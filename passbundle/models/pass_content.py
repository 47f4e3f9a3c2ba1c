"""
Pydantic models for pass content handed to the packaging pipeline.
"""
from pathlib import Path
from typing import Any, Dict, List, Optional
import json

from pydantic import BaseModel, Field, model_validator


class Image(BaseModel):
    """A media file copied into the bundle as <context>[@2x].<extension>."""
    path: Path
    context: str
    retina: bool = False
    extension: Optional[str] = None

    @model_validator(mode="after")
    def _require_file_extension(self) -> "Image":
        if not self.file_extension:
            raise ValueError(f"Image {self.path} has no file extension; pass one explicitly")
        return self

    @property
    def file_extension(self) -> str:
        if self.extension:
            return self.extension.lstrip(".")
        return self.path.suffix.lstrip(".")

    @property
    def filename(self) -> str:
        name = self.context
        if self.retina:
            name += "@2x"
        return f"{name}.{self.file_extension}"


def _escape_strings_token(value: str) -> str:
    return value.replace("\\", "\\\\").replace('"', '\\"')


class Localization(BaseModel):
    language: str
    strings: Dict[str, str] = Field(default_factory=dict)
    images: List[Image] = Field(default_factory=list)

    @property
    def directory_name(self) -> str:
        return f"{self.language}.lproj"

    def strings_file_output(self) -> str:
        """Render the string table in pass.strings format ("token" = "value";)."""
        output = ""
        for token, value in self.strings.items():
            output += f'"{_escape_strings_token(token)}" = "{_escape_strings_token(value)}";\n'
        return output


class PassContent(BaseModel):
    serial_number: str
    description: str = ""
    format_version: int = 1
    pass_type_identifier: Optional[str] = None
    team_identifier: Optional[str] = None
    organization_name: Optional[str] = None
    # Remaining pass.json keys (style, fields, barcode, colors, ...)
    structure: Dict[str, Any] = Field(default_factory=dict)
    images: List[Image] = Field(default_factory=list)
    localizations: List[Localization] = Field(default_factory=list)

    def add_image(self, image: Image) -> "PassContent":
        self.images.append(image)
        return self

    def add_localization(self, localization: Localization) -> "PassContent":
        self.localizations.append(localization)
        return self

    def to_dict(self) -> Dict[str, Any]:
        data = dict(self.structure)
        identity = {
            "formatVersion": self.format_version,
            "passTypeIdentifier": self.pass_type_identifier,
            "serialNumber": self.serial_number,
            "teamIdentifier": self.team_identifier,
            "organizationName": self.organization_name,
            "description": self.description,
        }
        data.update({key: value for key, value in identity.items() if value is not None})
        return data

    def serialize(self) -> bytes:
        return json.dumps(self.to_dict(), ensure_ascii=False).encode("utf-8")
