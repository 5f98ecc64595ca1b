"""Authentication and authorization.

Learn: One authentication path — username/password accounts that log in
with email + password and receive a stateless JWT bearer token.

- password.py: bcrypt hashing (fixed work factor)
- jwt.py: token issue/verify, expired vs invalid distinguished
- dependencies.py: the FastAPI gate every protected route passes through
"""
