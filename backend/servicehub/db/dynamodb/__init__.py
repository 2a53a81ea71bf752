"""DynamoDB access for the single ServiceHub table.

Centralizes the table wrapper, botocore error mapping and the retry
policy for throttled calls.
"""
