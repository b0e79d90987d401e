import uuid


def is_valid_uuid(value) -> bool:
    # ORM UUIDField 조회 전에 걸러내야 ValidationError 대신 "없음"으로 처리된다
    try:
        uuid.UUID(str(value))
    except (TypeError, ValueError):
        return False
    return True
