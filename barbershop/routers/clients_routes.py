# barbershop/routers/clients_routes.py

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import func, or_
from sqlmodel import Session, col, select

from barbershop.db import get_session
from barbershop.messages import format_phone_number, validate_phone_number
from barbershop.models import Client
from barbershop.schemas import ClientCreate, ClientPublic

router = APIRouter(
    prefix="/clients",
    tags=["clients"],
)


@router.post("", response_model=ClientPublic, status_code=201)
def create_client(
    client: ClientCreate,
    session: Session = Depends(get_session),
):
    if not validate_phone_number(client.phone):
        raise HTTPException(status_code=422, detail="Phone number must be 8 local digits")
    phone = format_phone_number(client.phone)

    existing = session.exec(select(Client).where(Client.phone == phone)).first()
    if existing is not None:
        raise HTTPException(status_code=409, detail="Phone number already registered")

    db_client = Client(name=client.name.strip(), phone=phone, email=client.email)
    session.add(db_client)
    session.commit()
    session.refresh(db_client)
    return db_client


@router.get("", response_model=List[ClientPublic])
def list_clients(
    search: Optional[str] = None,
    session: Session = Depends(get_session),
):
    stmt = select(Client)
    if search:
        pattern = f"%{search.strip().lower()}%"
        stmt = stmt.where(
            or_(func.lower(Client.name).like(pattern), col(Client.phone).like(pattern))
        )
    stmt = stmt.order_by(Client.name)
    return session.exec(stmt).all()
