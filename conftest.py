# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Test environment: settings are read once at import, so the SQLite-backed
store has to be selected before any ``app`` module is loaded.
"""
import os

os.environ["SCHEDULING_BACKEND"] = "sql"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["DB_AUTO_CREATE"] = "true"
os.environ.setdefault("LOG_LEVEL", "WARNING")
