# settings/__init__.py
import os

DJANGO_ENV = os.getenv("DJANGO_ENV", "development").lower()

if DJANGO_ENV == "production":
    from .production import *
elif DJANGO_ENV == "testing":
    from .testing import *
else:
    from .development import *
