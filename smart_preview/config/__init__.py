"""
Configuration Package for Smart Preview.

This package centralizes all the static configuration settings for the application.
By separating configuration from the application logic, it becomes easier to manage
and modify parameters without changing the core code.

This package includes settings for:
- Audio and video MIME/extension allow-lists and recorder preferences.
- Common application settings like logging formats, duration limits, progress
  stage names, and capture session statuses.
- User-overridable paths and limits loaded from `config.user.yaml`.
"""
