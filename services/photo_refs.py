"""
Validação da referência de foto da estante (URL https ou data URI de imagem).
O armazenamento da imagem em si fica fora deste serviço.
"""
import base64
import binascii
from typing import Optional
from urllib.parse import urlparse
from services.errors import ValidationError

MAX_PHOTO_BYTES = 5 * 1024 * 1024  # 5MB decodificados
MAX_PHOTO_URL_LENGTH = 4096

ALLOWED_IMAGE_MIME_TYPES = {
    "image/jpeg",
    "image/png",
    "image/gif",
    "image/webp",
    "image/svg+xml",
}


def sanitize_photo_url(raw: Optional[str]) -> Optional[str]:
    """Retorna a referência limpa, None se vazia, ou levanta ValidationError"""
    trimmed = (raw or "").strip()
    if not trimmed:
        return None

    if trimmed.startswith("data:"):
        header, sep, data = trimmed.partition(",")
        if not sep:
            raise ValidationError("photo_url: data URI inválida")

        mime_type = header[len("data:"):]
        if mime_type.endswith(";base64"):
            mime_type = mime_type[:-len(";base64")]
        if mime_type.lower() not in ALLOWED_IMAGE_MIME_TYPES:
            raise ValidationError("photo_url: tipo de imagem não suportado (JPEG, PNG, GIF, WebP ou SVG)")

        try:
            base64.b64decode(data, validate=True)
        except (binascii.Error, ValueError):
            raise ValidationError("photo_url: conteúdo base64 inválido")

        if len(data) * 3 // 4 > MAX_PHOTO_BYTES:
            raise ValidationError(f"photo_url: imagem maior que {MAX_PHOTO_BYTES // (1024 * 1024)}MB")
        return trimmed

    if len(trimmed) > MAX_PHOTO_URL_LENGTH:
        raise ValidationError(f"photo_url: deve ter no máximo {MAX_PHOTO_URL_LENGTH} caracteres")

    parsed = urlparse(trimmed)
    if parsed.scheme != "https":
        raise ValidationError("photo_url: precisa usar HTTPS")
    if not parsed.netloc:
        raise ValidationError("photo_url: host inválido")

    return trimmed
