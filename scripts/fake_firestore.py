"""In-memory stand-ins for Firestore, Storage and token verification.

Only the calls the service layer makes are implemented. Documents are kept
in one dict keyed by their full path (``users/u1``,
``users/u1/dailyMeasures/2024-01-01``). Writes queued on a ``FakeTransaction``
are applied only when the transaction body returns, so a failure part way
through leaves the store untouched, like a real Firestore transaction.
"""
import copy
import itertools
from datetime import datetime, timezone
from unittest import mock

from google.api_core import exceptions as gexc
from google.cloud.firestore_v1 import transforms

_ids = itertools.count(1)


def _apply(current, data, merge):
    out = copy.deepcopy(current) if (merge and current is not None) else {}
    for key, value in data.items():
        if isinstance(value, transforms.ArrayUnion):
            existing = list(out.get(key) or [])
            for v in value.values:
                if v not in existing:
                    existing.append(v)
            out[key] = existing
        elif isinstance(value, transforms.ArrayRemove):
            out[key] = [v for v in (out.get(key) or []) if v not in value.values]
        elif value is transforms.SERVER_TIMESTAMP:
            out[key] = datetime.now(timezone.utc)
        else:
            out[key] = copy.deepcopy(value)
    return out


class FakeSnapshot:
    def __init__(self, ref, data):
        self.reference = ref
        self.id = ref.id
        self._data = data

    @property
    def exists(self):
        return self._data is not None

    def to_dict(self):
        return copy.deepcopy(self._data) if self._data is not None else None

    def get(self, field):
        return (self._data or {}).get(field)


class FakeDocRef:
    def __init__(self, db, path):
        self._db = db
        self.path = path
        self.id = path.rsplit("/", 1)[-1]

    def collection(self, name):
        return FakeCollection(self._db, f"{self.path}/{name}")

    def get(self, transaction=None):
        self._db.reads.append(self.path)
        return FakeSnapshot(self, copy.deepcopy(self._db.docs.get(self.path)))

    def create(self, data):
        if self.path in self._db.docs:
            raise gexc.Conflict(f"Document already exists: {self.path}")
        self._db.write("set", self.path, data)

    def set(self, data, merge=False):
        self._db.write("set", self.path, data, merge)

    def update(self, data):
        self._db.write("update", self.path, data)

    def delete(self):
        self._db.write("delete", self.path)


class FakeQuery:
    def __init__(self, db, path, filters=None, order=None, limit_to=None):
        self._db = db
        self._path = path
        self._filters = filters or []
        self._order = order
        self._limit = limit_to

    def _copy(self, **kw):
        args = dict(filters=list(self._filters), order=self._order, limit_to=self._limit)
        args.update(kw)
        return FakeQuery(self._db, self._path, **args)

    def where(self, field_path=None, op_string=None, value=None, filter=None):
        if filter is not None:
            field_path, op_string, value = filter.field_path, filter.op_string, filter.value
        return self._copy(filters=self._filters + [(field_path, op_string, value)])

    def order_by(self, field_path, direction="ASCENDING"):
        return self._copy(order=(field_path, direction))

    def limit(self, count):
        return self._copy(limit_to=count)

    @staticmethod
    def _match(data, field, op, value):
        if field not in data:
            return False
        actual = data[field]
        if op == "==":
            return actual == value
        if op == "!=":
            return actual != value
        if op == "in":
            return actual in value
        if op == "array_contains":
            return value in (actual or [])
        if op == ">=":
            return actual >= value
        if op == "<=":
            return actual <= value
        if op == ">":
            return actual > value
        if op == "<":
            return actual < value
        raise NotImplementedError(op)

    def stream(self, transaction=None):
        prefix = self._path + "/"
        rows = []
        for path, data in self._db.docs.items():
            if not path.startswith(prefix) or "/" in path[len(prefix):]:
                continue
            if all(self._match(data, f, op, v) for f, op, v in self._filters):
                rows.append((path, data))

        if self._order:
            field, direction = self._order
            rows = [r for r in rows if field in r[1]]
            rows.sort(key=lambda r: r[1][field], reverse=str(direction).upper().startswith("DESC"))
        if self._limit is not None:
            rows = rows[: self._limit]

        for path, data in rows:
            yield FakeSnapshot(FakeDocRef(self._db, path), copy.deepcopy(data))

    def get(self):
        return list(self.stream())


class FakeCollection(FakeQuery):
    def __init__(self, db, path):
        super().__init__(db, path)

    @property
    def id(self):
        return self._path.rsplit("/", 1)[-1]

    def document(self, doc_id=None):
        return FakeDocRef(self._db, f"{self._path}/{doc_id or f'auto{next(_ids)}'}")

    def add(self, data):
        ref = self.document()
        ref.set(data)
        return datetime.now(timezone.utc), ref


class FakeTransaction:
    def __init__(self, db):
        self._db = db
        self._writes = []

    def set(self, ref, data, merge=False):
        self._writes.append(("set", ref.path, data, merge))

    def update(self, ref, data):
        self._writes.append(("update", ref.path, data, False))

    def delete(self, ref):
        self._writes.append(("delete", ref.path, None, False))

    def commit(self):
        for _, path, _, _ in self._writes:
            if path in self._db.failing_paths:
                raise gexc.ServiceUnavailable(f"simulated failure writing {path}")
        for op, path, data, merge in self._writes:
            self._db.write(op, path, data, merge)


class FakeFirestore:
    def __init__(self):
        self.docs = {}
        self.reads = []
        # Writes to these paths raise, to simulate a failing backend
        self.failing_paths = set()

    def collection(self, name):
        return FakeCollection(self, name)

    def transaction(self):
        return FakeTransaction(self)

    def write(self, op, path, data=None, merge=False):
        if path in self.failing_paths:
            raise gexc.ServiceUnavailable(f"simulated failure writing {path}")
        if op == "delete":
            self.docs.pop(path, None)
        elif op == "update":
            if path not in self.docs:
                raise gexc.NotFound(f"No document to update: {path}")
            self.docs[path] = _apply(self.docs[path], data, merge=True)
        else:
            self.docs[path] = _apply(self.docs.get(path), data, merge)

    # Test helpers
    def put(self, path, data):
        self.docs[path] = copy.deepcopy(data)

    def data(self, path):
        return self.docs.get(path)


def fake_run_transaction(db):
    def _run(fn, *args, **kwargs):
        transaction = db.transaction()
        result = fn(transaction, *args, **kwargs)
        transaction.commit()
        return result
    return _run


class FakeBlob:
    def __init__(self, bucket, path):
        self._bucket = bucket
        self.name = path
        self.metadata = None

    def upload_from_string(self, content, content_type=None):
        self._bucket.blobs[self.name] = (content, content_type)
        self._bucket.metadata[self.name] = self.metadata

    def make_public(self):
        # New Firebase buckets use uniform bucket-level access
        raise gexc.BadRequest("Cannot set object ACLs with uniform bucket-level access")

    def delete(self):
        if self.name in self._bucket.failing:
            raise gexc.ServiceUnavailable("simulated storage failure")
        self._bucket.blobs.pop(self.name, None)


class FakeBucket:
    name = "smartcare-test.appspot.com"

    def __init__(self):
        self.blobs = {}
        self.metadata = {}
        self.failing = set()

    def blob(self, path):
        return FakeBlob(self, path)


def fake_verify_id_token(token, *args, **kwargs):
    """Tokens look like ``uid`` or ``uid:role``; ``bad`` is rejected."""
    if token == "bad":
        raise ValueError("invalid token")
    uid, _, role = token.partition(":")
    claims = {"uid": uid, "email": f"{uid}@example.com"}
    if role:
        claims["role"] = role
    return claims


def install(testcase):
    """Patch Firebase for one test case; returns ``(db, bucket)``."""
    db = FakeFirestore()
    bucket = FakeBucket()
    patches = [
        mock.patch("smartcare.core.firebase.db", db),
        mock.patch("smartcare.services.caregiver_service.run_transaction", fake_run_transaction(db)),
        mock.patch("smartcare.services.health_service.get_bucket", lambda: bucket),
        mock.patch("smartcare.api.deps.auth.verify_id_token", fake_verify_id_token),
    ]
    for p in patches:
        p.start()
        testcase.addCleanup(p.stop)
    return db, bucket


def auth_header(token):
    return {"Authorization": f"Bearer {token}"}


def seed_user(db, uid, role, **fields):
    doc = {
        "uid": uid,
        "email": f"{uid}@example.com",
        "role": role,
        "approved": role != "doctor",
        "profileCompleted": True,
        "caregivers": [],
        "patients": [],
        "createdAt": 1_700_000_000_000,
    }
    doc.update(fields)
    db.put(f"users/{uid}", doc)
    return doc
