"""
Contract package.

Request params models live in api.contracts.pydantic_models.
"""
