from fastapi import Header, HTTPException

def get_user_id(x_user_id: str = Header(...)) -> str:
    """Acting user, stamped on created_by/updated_by/deleted_by. Supplied by the auth proxy."""
    if not x_user_id:
        raise HTTPException(status_code=400, detail="X-User-ID header is missing")
    return x_user_id
