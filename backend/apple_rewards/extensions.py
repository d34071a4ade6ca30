# Overview: Flask extension instances shared by the app factory, models and services.

from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate

# Bound to an app in create_app(); never used before init_app.
db = SQLAlchemy()
migrate = Migrate()
