from sqlalchemy.exc import IntegrityError


class ContentEngineError(Exception):
    def __init__(self, message: str, error_type: str):
        super().__init__(message)
        self.message = message
        self.error_type = error_type


class ArchiveCorruptError(ContentEngineError):
    def __init__(self, message: str):
        super().__init__(message, error_type="archive")


class EntryValidationError(ContentEngineError):
    def __init__(self, message: str, errors: list[str] | None = None):
        super().__init__(message, error_type="validation")
        self.errors = list(errors or [message])


class StoreConstraintError(ContentEngineError):
    def __init__(self, message: str):
        super().__init__(message, error_type="constraint")


def _constraint_label(message: str) -> str:
    lowered = message.lower()
    if "uq_posts_group_locale" in lowered or "group_id" in lowered:
        return "groupId+locale"
    if "uq_posts_locale_slug" in lowered or "slug" in lowered:
        return "locale+slug"
    return ""


def normalize_store_error(exc: Exception) -> ContentEngineError:
    if isinstance(exc, ContentEngineError):
        return exc

    if isinstance(exc, IntegrityError):
        raw = str(exc.orig) if exc.orig is not None else str(exc)
        label = _constraint_label(raw)
        if label:
            return StoreConstraintError(f"唯一键冲突({label})")
        return StoreConstraintError(f"数据库约束冲突：{raw}")

    return StoreConstraintError(str(exc))
