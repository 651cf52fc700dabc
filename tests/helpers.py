from types import SimpleNamespace

ADMIN = "admin@school.test"
TEACHER = "teacher@school.test"
STUDENT = "student@school.test"
PARENT = "parent@school.test"


def bearer(who: str) -> dict:
    return {"Authorization": f"Bearer mock-{who}"}


class FakeQuery:
    """Records the builder calls made against one table."""

    def __init__(self, client, table):
        self.client = client
        self.table = table
        self.calls = []
        client.queries.append(self)

    def __getattr__(self, name):
        def method(*args, **kwargs):
            self.calls.append((name, args, kwargs))
            return self
        return method

    def execute(self):
        if self.client.error is not None:
            raise self.client.error
        return SimpleNamespace(data=self.client.responses.pop(0) if self.client.responses else [])


class FakeClient:
    """Stands in for the Supabase client; each ``execute`` pops the next response."""

    def __init__(self, responses=(), error=None):
        self.responses = list(responses)
        self.error = error
        self.queries = []

    def table(self, name):
        return FakeQuery(self, name)
