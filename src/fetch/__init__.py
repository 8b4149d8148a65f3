"""Inputs from the go command: module registry and requirement graph."""
