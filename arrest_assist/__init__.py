"""Cardiac-arrest resuscitation session engine.

This package contains the protocol state machine, its clock and the
intervention log, isolated from any presentation layer for easy testing.
"""
