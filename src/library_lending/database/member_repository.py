"""SQLAlchemy member store."""

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from ..models.member import Member as MemberModel
from .repository import MemberStore
from .schema import Member as MemberDB
from .session import safe_commit, safe_query


class SqlMemberStore(MemberStore):
    """Member store backed by the ``members`` table."""

    def __init__(self, session: Session):
        """Initialize store with database session."""
        self.session = session

    def _get_row(self, id: str) -> MemberDB | None:
        query = select(MemberDB).where(MemberDB.id == id)
        return safe_query(
            self.session,
            lambda s: s.execute(query).scalar_one_or_none(),
            f"Failed to get member {id}",
        )

    def find_by_id(self, id: str) -> MemberModel | None:
        row = self._get_row(id)
        if row is None:
            return None
        return MemberModel.model_validate(row, from_attributes=True)

    def find_all(self) -> list[MemberModel]:
        query = select(MemberDB).order_by(MemberDB.id)
        rows = safe_query(
            self.session, lambda s: s.execute(query).scalars().all(), "Failed to list members"
        )
        return [MemberModel.model_validate(row, from_attributes=True) for row in rows]

    def save(self, entity: MemberModel) -> MemberModel:
        row = self._get_row(entity.id)
        if row is None:
            row = MemberDB(id=entity.id)
            self.session.add(row)
        row.name = entity.name

        safe_commit(self.session, f"save member {entity.id}")
        self.session.refresh(row)
        return MemberModel.model_validate(row, from_attributes=True)

    def delete(self, entity: MemberModel) -> None:
        row = self._get_row(entity.id)
        if row is None:
            return
        self.session.delete(row)
        safe_commit(self.session, f"delete member {entity.id}")

    def exists_by_id(self, id: str) -> bool:
        query = select(func.count()).select_from(MemberDB).where(MemberDB.id == id)
        count = safe_query(
            self.session, lambda s: s.execute(query).scalar(), "Failed to check existence"
        )
        return bool(count)
