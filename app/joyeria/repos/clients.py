from app.joyeria.db.models import Client


class ClientRepository:
    def __init__(self, db):
        self.db = db

    def get_by_id(self, client_id):
        return self.db.get(Client, client_id)
