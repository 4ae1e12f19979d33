"""
Unit Test Layer Configuration

Structure:
    tests/unit/
    └── fulfillment_service/   Pure business logic, models, parsing

Usage:
    pytest tests/unit -v
"""
import os
import sys

# Add project root
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))
