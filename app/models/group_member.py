from sqlalchemy import Column, ForeignKey, Integer, DateTime, UniqueConstraint, func
from sqlalchemy.orm import relationship
from app.db.session import Base

class GroupMember(Base):
    __tablename__ = "group_members"
    __table_args__ = (UniqueConstraint("group_id", "user_id", name="uq_group_member"),)

    id = Column(Integer, primary_key=True, index=True)
    group_id = Column(Integer, ForeignKey("groups.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    joined_at = Column(DateTime(timezone=True), server_default=func.now())
    # set when the member leaves or is removed; the row stays for history
    left_at = Column(DateTime(timezone=True), nullable=True)

    group = relationship("Group", back_populates="members")
