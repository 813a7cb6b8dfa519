"""Champion lookups used to validate reviews before they are written."""
from typing import Optional

from sqlalchemy.orm import Session

from database_adapter import Champion


class ChampionService:

    def __init__(self, session: Session):
        self.session = session

    def champion_id_exists(self, champion_id: int) -> bool:
        return self.session.get(Champion, champion_id) is not None

    def champion_name_exists(self, name: str) -> bool:
        return self.get_champion_by_name(name) is not None

    def get_champion_by_name(self, name: str) -> Optional[Champion]:
        return self.session.query(Champion).filter(Champion.name == name).first()
