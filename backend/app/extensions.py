# Overview: Flask extension instances for database, migrations and outgoing mail.

from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate

from .mail import Mailer

db = SQLAlchemy()
migrate = Migrate()
mailer = Mailer()
