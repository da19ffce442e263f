from datetime import datetime, timezone

from codepractice.extensions import db


def _utcnow():
    return datetime.now(timezone.utc)


class CodeDraft(db.Model):
    """Persisted editor draft, keyed per browser profile (``draft:<problem id>``)."""

    __tablename__ = 'code_draft'
    __table_args__ = (
        db.UniqueConstraint('profile_id', 'key', name='uq_code_draft_profile_key'),
    )

    id = db.Column(db.Integer, primary_key=True)
    profile_id = db.Column(db.String(64), nullable=False, index=True)
    key = db.Column(db.String(200), nullable=False)
    text = db.Column(db.Text, nullable=False, default='')
    updated_at = db.Column(
        db.DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow
    )

    @staticmethod
    def get(profile_id, key, default=None):
        """Read a single draft, returning *default* if not found."""
        d = CodeDraft.query.filter_by(profile_id=profile_id, key=key).first()
        return d.text if d else default

    @staticmethod
    def set(profile_id, key, text):
        """Create or overwrite a draft. Caller must commit the session."""
        d = CodeDraft.query.filter_by(profile_id=profile_id, key=key).first()
        if d:
            d.text = text
        else:
            d = CodeDraft(profile_id=profile_id, key=key, text=text)
            db.session.add(d)

    def __repr__(self) -> str:
        return f'<CodeDraft profile={self.profile_id!r} key={self.key!r}>'
