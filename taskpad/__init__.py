"""Taskpad: personal task tracker API."""
