"""Operator scripts for the spare-parts kernel."""
