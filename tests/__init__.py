"""Test suite for studioforge.

Test Structure:
- unit/: Unit tests per area (api/http, api/gemini, studio, config, utils, cli)
- conftest.py: Shared fixtures (sample images, credential, recording sleep)
"""
