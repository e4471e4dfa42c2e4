"""
Data models for the medicine service API boundary
"""

import mimetypes
import os
from dataclasses import dataclass, field, fields
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Any, Generic, TypeVar, Union

T = TypeVar("T")


class ErrorKind(Enum):
    """Categories of failed calls"""
    NETWORK = "network"            # No response received
    SERVER = "server"              # Non-2xx or unparsable body
    PRECONDITION = "precondition"  # Short-circuited before any request


@dataclass
class ApiResponse(Generic[T]):
    """Uniform result of every API call"""
    data: Optional[T] = None
    error: Optional[str] = None
    message: Optional[str] = None
    status: Optional[int] = None
    error_kind: Optional[ErrorKind] = None
    superseded: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None and not self.superseded

    @classmethod
    def failure(cls, error: str, kind: ErrorKind, status: Optional[int] = None) -> 'ApiResponse':
        return cls(error=error, error_kind=kind, status=status)

    def with_data(self, data: Any) -> 'ApiResponse':
        """Copy of this response carrying converted data"""
        return ApiResponse(data=data, error=self.error, message=self.message, status=self.status,
                           error_kind=self.error_kind, superseded=self.superseded)


@dataclass
class User:
    """Identity record returned by the auth and profile endpoints"""
    id: str
    name: str
    email: str
    role: str = "user"
    phone: Optional[str] = None
    gender: Optional[str] = None
    date_of_birth: Optional[str] = None
    image: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'User':
        return cls(
            id=str(data.get("id", "")),
            name=data.get("name", ""),
            email=data.get("email", ""),
            role=data.get("role") or "user",
            phone=data.get("phone"),
            gender=data.get("gender"),
            date_of_birth=data.get("dateOfBirth"),
            image=data.get("image"),
        )

    def to_dict(self) -> Dict[str, Any]:
        result = {"id": self.id, "name": self.name, "email": self.email, "role": self.role}
        optional = {
            "phone": self.phone,
            "gender": self.gender,
            "dateOfBirth": self.date_of_birth,
            "image": self.image,
        }
        result.update({k: v for k, v in optional.items() if v is not None})
        return result


@dataclass
class LoginResponse:
    user: Optional[User]
    access_token: Optional[str]

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'LoginResponse':
        user_data = data.get("user")
        return cls(
            user=User.from_dict(user_data) if isinstance(user_data, dict) else None,
            access_token=data.get("access_token"),
        )


def _camel_payload(obj) -> Dict[str, Any]:
    """Serialize a dataclass to the server's camelCase keys, dropping unset fields"""
    renames = {"date_of_birth": "dateOfBirth"}
    return {
        renames.get(f.name, f.name): getattr(obj, f.name)
        for f in fields(obj)
        if getattr(obj, f.name) is not None
    }


@dataclass
class RegisterData:
    name: str
    email: str
    password: str
    phone: Optional[str] = None
    gender: Optional[str] = None
    date_of_birth: Optional[str] = None
    location: Optional[str] = None
    bio: Optional[str] = None

    def to_payload(self) -> Dict[str, Any]:
        return _camel_payload(self)


@dataclass
class ProfileUpdate:
    """Partial profile update; only set fields are sent"""
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    gender: Optional[str] = None
    date_of_birth: Optional[str] = None
    location: Optional[str] = None
    bio: Optional[str] = None

    def to_payload(self) -> Dict[str, Any]:
        return _camel_payload(self)

    def is_empty(self) -> bool:
        return not self.to_payload()


@dataclass
class MedicineResult:
    """
    Medicine search result.

    The server may add fields at any time; everything not mapped to an
    attribute lands in ``extra`` and is written back by ``to_dict``. Mapped
    fields that arrived on the wire are written back exactly as received
    (ids keep their type, explicit nulls and empty lists stay) unless the
    attribute was changed since.
    """
    id: Union[str, int]
    name: str
    name_bn: Optional[str] = None
    brand: Optional[str] = None
    brand_bn: Optional[str] = None
    similarity: Optional[float] = None
    confidence: Optional[float] = None
    images: List[str] = field(default_factory=list)
    matched_image: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)
    # Mapped wire fields as received, keyed by wire name
    received: Dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    # attribute name -> wire name
    WIRE_NAMES = {
        "id": "id",
        "name": "name",
        "name_bn": "nameBn",
        "brand": "brand",
        "brand_bn": "brandBn",
        "similarity": "similarity",
        "confidence": "confidence",
        "images": "images",
        "matched_image": "matched_image",
    }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'MedicineResult':
        known = set(cls.WIRE_NAMES.values())
        return cls(
            id=data.get("id", ""),
            name=data.get("name", ""),
            name_bn=data.get("nameBn"),
            brand=data.get("brand"),
            brand_bn=data.get("brandBn"),
            similarity=data.get("similarity"),
            confidence=data.get("confidence"),
            images=list(data.get("images") or []),
            matched_image=data.get("matched_image"),
            extra={k: v for k, v in data.items() if k not in known},
            received={k: v for k, v in data.items() if k in known},
        )

    def to_dict(self) -> Dict[str, Any]:
        result = dict(self.extra)
        for attr, wire in self.WIRE_NAMES.items():
            value = getattr(self, attr)
            if wire in self.received:
                raw = self.received[wire]
                as_parsed = list(raw or []) if attr == "images" else raw
                if value == as_parsed:
                    result[wire] = raw
                    continue
            if value is None or (attr == "images" and not value):
                continue
            result[wire] = value
        return result

    def display_name(self, language: str = "en") -> str:
        if language == "bn" and self.name_bn:
            return self.name_bn
        return self.name

    def display_brand(self, language: str = "en") -> Optional[str]:
        if language == "bn" and self.brand_bn:
            return self.brand_bn
        return self.brand

    @property
    def primary_image(self) -> Optional[str]:
        """Image to show for the result: the matched one, else the first"""
        if self.matched_image:
            return self.matched_image
        return self.images[0] if self.images else None


class HistoryActionType(Enum):
    SCAN = "scan"
    UPLOAD = "upload"
    VIEW = "view"


def _parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except (TypeError, ValueError):
        return None


@dataclass
class HistoryEntry:
    """A user history record; read-only on the client"""
    id: str
    action_type: Union[HistoryActionType, str]
    image_data: Optional[str] = None
    result_data: Optional[List[MedicineResult]] = None
    is_successful: bool = False
    error_message: Optional[str] = None
    user_id: Optional[str] = None
    medicine_id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'HistoryEntry':
        raw_action = data.get("actionType", "")
        try:
            action_type = HistoryActionType(raw_action)
        except ValueError:
            action_type = raw_action

        raw_results = data.get("resultData")
        result_data = None
        if isinstance(raw_results, list):
            result_data = [MedicineResult.from_dict(r) for r in raw_results if isinstance(r, dict)]

        medicine_id = data.get("medicineId")
        return cls(
            id=str(data.get("id", "")),
            action_type=action_type,
            image_data=data.get("imageData"),
            result_data=result_data,
            is_successful=bool(data.get("isSuccessful", False)),
            error_message=data.get("errorMessage"),
            user_id=str(data["userId"]) if data.get("userId") is not None else None,
            medicine_id=str(medicine_id) if medicine_id is not None else None,
            created_at=_parse_timestamp(data.get("createdAt")),
            updated_at=_parse_timestamp(data.get("updatedAt")),
        )

    @property
    def top_result(self) -> Optional[MedicineResult]:
        return self.result_data[0] if self.result_data else None


def unwrap_list(payload: Any) -> List[Dict[str, Any]]:
    """Items of a paginated ``{data: [...]}`` body or of a raw array"""
    if isinstance(payload, dict):
        payload = payload.get("data")
    if not isinstance(payload, list):
        return []
    return [item for item in payload if isinstance(item, dict)]


@dataclass
class ImageFile:
    """Image bytes ready to be sent as a multipart file field"""
    filename: str
    content: bytes
    content_type: str = "image/jpeg"

    @classmethod
    def from_path(cls, path: Union[str, os.PathLike]) -> 'ImageFile':
        path = Path(path)
        content_type, _ = mimetypes.guess_type(path.name)
        return cls(
            filename=path.name,
            content=path.read_bytes(),
            content_type=content_type or "application/octet-stream",
        )

    @property
    def size(self) -> int:
        return len(self.content)
