from sqlalchemy.orm import Session

from mod_assign.models.preference import UserPreference

PREF_PER_PAGE = "assign_perpage"
PREF_FILTER = "assign_filter"


def get_user_preference(db: Session, user_id: int, name: str, default: str | None = None) -> str | None:
    pref = (
        db.query(UserPreference)
        .filter(UserPreference.user_id == user_id, UserPreference.name == name)
        .first()
    )
    return pref.value if pref else default


def set_user_preference(db: Session, user_id: int, name: str, value) -> None:
    pref = (
        db.query(UserPreference)
        .filter(UserPreference.user_id == user_id, UserPreference.name == name)
        .first()
    )
    if pref is None:
        pref = UserPreference(user_id=user_id, name=name)
        db.add(pref)
    pref.value = str(value)
    db.commit()
