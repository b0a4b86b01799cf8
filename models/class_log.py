from datetime import datetime

from extensions import db


class ClassDailyLog(db.Model):
    """
    Diário de classe: una entrada por aula/día con el contenido dado
    y la chamada (student_id -> presente).
    """
    __tablename__ = "class_logs"

    id = db.Column(db.String(36), primary_key=True)
    class_id = db.Column(db.String(36), nullable=False, index=True)
    date = db.Column(db.Date, nullable=False)
    content = db.Column(db.Text, nullable=True)
    attendance = db.Column(db.JSON, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
