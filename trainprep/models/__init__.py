"""
TrainPrep: Training Coordination Platform
SQLAlchemy extension shared by every model module.

Usage:
    from trainprep.models import db
"""

from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()
