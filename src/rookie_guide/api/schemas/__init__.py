"""Pydantic schemas shared by the API routers."""
