"""Threaded project comments."""

from datetime import datetime, timezone

from parjis.models import db


class Comment(db.Model):
    __tablename__ = "comments"

    id = db.Column(db.Integer, primary_key=True)
    project_id = db.Column(
        db.Integer, db.ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    content = db.Column(db.Text, nullable=False)
    parent_comment_id = db.Column(
        db.Integer, db.ForeignKey("comments.id", ondelete="CASCADE"), nullable=True,
        comment="Reply target; NULL for top-level comments",
    )
    created_at = db.Column(
        db.DateTime(timezone=True), nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at = db.Column(
        db.DateTime(timezone=True), nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    author = db.relationship("User", foreign_keys=[user_id])
    replies = db.relationship(
        "Comment",
        backref=db.backref("parent", remote_side=[id]),
        cascade="all, delete-orphan",
        order_by="Comment.id",
    )

    def to_dict(self, include_replies=False):
        d = {
            "id": self.id,
            "project_id": self.project_id,
            "user_id": self.user_id,
            "author_name": self.author.name if self.author else None,
            "content": self.content,
            "parent_comment_id": self.parent_comment_id,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
        if include_replies:
            d["replies"] = [r.to_dict(include_replies=True) for r in self.replies]
        return d

    def __repr__(self):
        return f"<Comment {self.id}: project={self.project_id} by user={self.user_id}>"
