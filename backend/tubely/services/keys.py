import secrets

from tubely.services.inspector import AspectRatio

ASSET_ID_BYTES = 32
FALLBACK_EXTENSION = ".bin"


def media_type_to_ext(media_type: str) -> str:
    parts = media_type.split("/")
    if len(parts) != 2 or not parts[1]:
        return FALLBACK_EXTENSION
    return f".{parts[1]}"


def generate_asset_id() -> str:
    # 32 bytes of os.urandom, URL-safe base64 without padding (43 chars)
    return secrets.token_urlsafe(ASSET_ID_BYTES)


def generate_asset_name(media_type: str) -> str:
    return f"{generate_asset_id()}{media_type_to_ext(media_type)}"


def derive_key(media_type: str, aspect: AspectRatio | str) -> str:
    """Build ``<orientation>/<random id><ext>``.

    Keys are not checked against the bucket; with 256 random bits a
    collision is not a practical concern, and an overwrite would go
    unnoticed.
    """
    # raises ValueError for anything outside landscape, portrait, other
    directory = AspectRatio(aspect).value
    return f"{directory}/{generate_asset_name(media_type)}"
