from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field
from typing import List, Optional
import os

app = FastAPI(title="Mock Mail Relay", version="1.0.0")
# Addresses at this domain are rejected, to exercise FAILED outcomes
REJECT_DOMAIN = os.getenv("MOCK_RELAY_REJECT_DOMAIN", "bounce.test")


class OutboundMail(BaseModel):
    sender: str = Field(alias="from")
    to: str
    subject: str
    text: str
    html: Optional[str] = None


OUTBOX: List[OutboundMail] = []

@app.get("/health")
def health(): return {"status": "ok"}

@app.post("/send", status_code=202)
def send(mail: OutboundMail):
    if mail.to.endswith("@" + REJECT_DOMAIN):
        raise HTTPException(status_code=422, detail="recipient rejected")
    OUTBOX.append(mail)
    return {"queued": len(OUTBOX)}

@app.get("/outbox")
def outbox(to: Optional[str] = None):
    return [m.model_dump(by_alias=True) for m in OUTBOX if to is None or m.to == to]

@app.delete("/outbox")
def clear():
    OUTBOX.clear()
    return {"cleared": True}
