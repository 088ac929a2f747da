from pydantic import BaseModel


class DeployRequest(BaseModel):
    owner: str
    name: str
