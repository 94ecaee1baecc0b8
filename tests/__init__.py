"""Test suite for the apiplan package.

This package contains unit and integration tests validating the
scenario model, its validation rules, the JMeter document compiler,
document parsing and the command line interface.
"""
