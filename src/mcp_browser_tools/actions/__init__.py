"""Blocking Selenium helpers shared by the browser tools."""
