"""Scheduler - Polling periódico por sesión."""
