import hashlib
import bcrypt

def _prehash(password: str) -> bytes:
    # bcrypt only looks at the first 72 bytes
    return hashlib.sha256(password.encode("utf-8")).digest()

def hash_password(password:str) -> str:
    return bcrypt.hashpw(_prehash(password), bcrypt.gensalt()).decode()

def verify_password(password:str, hashed_password:str) -> bool:
    return bcrypt.checkpw(_prehash(password), hashed_password.encode())
