from platform_drop import db


class GameSession(db.Model):
    """A single-use credential backing at most one leaderboard entry."""
    __tablename__ = 'game_session'
    id = db.Column(db.String(32), primary_key=True)
    # Server clock, epoch milliseconds
    issued_at = db.Column(db.BigInteger, nullable=False, index=True)
    used = db.Column(db.Boolean, default=False, nullable=False, index=True)
    client_ip = db.Column(db.String(64), nullable=True)
    consumed_at = db.Column(db.BigInteger, nullable=True)
    final_score = db.Column(db.Float, nullable=True)
    entry = db.relationship('LeaderboardEntry', back_populates='session', uselist=False)

    def to_dict(self):
        return {
            'id': self.id,
            'issued_at': self.issued_at,
            'used': self.used,
            'consumed_at': self.consumed_at,
            'final_score': self.final_score,
        }


class LeaderboardEntry(db.Model):
    __tablename__ = 'leaderboard_entry'
    id = db.Column(db.Integer, primary_key=True)
    avatar_id = db.Column(db.Integer, nullable=False)
    initials = db.Column(db.String(3), nullable=False)
    distance = db.Column(db.Integer, nullable=False, index=True)
    date = db.Column(db.String(40), nullable=False)  # ISO-8601, UTC
    session_id = db.Column(db.String(32), db.ForeignKey('game_session.id'), nullable=False, unique=True)
    session = db.relationship('GameSession', back_populates='entry')

    def to_dict(self):
        return {
            'avatarId': self.avatar_id,
            'initials': self.initials,
            'distance': self.distance,
            'date': self.date,
            'sessionId': self.session_id,
        }
