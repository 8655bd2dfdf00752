"""Shared Flask-SQLAlchemy handle.

Models import ``db`` from here so that ``app.py`` can initialise the extension
before the model modules are loaded.
"""
from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()
