import unittest

from fastapi.testclient import TestClient

from fake_firestore import auth_header, install, seed_user
from smartcare.core.errors import Conflict, Forbidden, NotFound
from smartcare.main import app
from smartcare.services import caregiver_service
from smartcare.services.session import resolve_session


def _requests(db):
    return {p: d for p, d in db.docs.items() if p.startswith("caregiverRequests/")}


class CaregiverServiceTest(unittest.TestCase):
    def setUp(self):
        self.db, _ = install(self)
        seed_user(self.db, "pat1", "patient", fullName="Pat One")
        seed_user(self.db, "cg1", "caregiver", email="carla@example.com", fullName="Carla")
        seed_user(self.db, "cg2", "caregiver", email="CARL@example.com")
        seed_user(self.db, "doc1", "doctor", email="carla.doc@example.com")

    def test_search_by_email_prefix_is_case_insensitive_and_caregivers_only(self):
        found = caregiver_service.search_caregivers_by_email_prefix("CAR")
        self.assertEqual(sorted(u.uid for u in found), ["cg1", "cg2"])
        self.assertEqual(caregiver_service.search_caregivers_by_email_prefix("carla")[0].uid, "cg1")
        self.assertEqual(caregiver_service.search_caregivers_by_email_prefix("   "), [])

    def test_send_request_creates_pending(self):
        req, created = caregiver_service.send_request("pat1", "cg1")
        self.assertTrue(created)
        self.assertEqual(req.status, "pending")
        stored = self.db.data(f"caregiverRequests/{req.id}")
        self.assertEqual(stored["patientId"], "pat1")
        self.assertEqual(stored["caregiverId"], "cg1")
        self.assertIn("createdAt", stored)

    def test_duplicate_pending_request_is_not_created(self):
        first, _ = caregiver_service.send_request("pat1", "cg1")
        second, created = caregiver_service.send_request("pat1", "cg1")
        self.assertFalse(created)
        self.assertEqual(second.id, first.id)
        self.assertEqual(len(_requests(self.db)), 1)

    def test_new_request_allowed_after_rejection(self):
        first, _ = caregiver_service.send_request("pat1", "cg1")
        caregiver_service.decide_request(first.id, "cg1", accept=False)
        second, created = caregiver_service.send_request("pat1", "cg1")
        self.assertTrue(created)
        self.assertNotEqual(second.id, first.id)

    def test_send_request_to_non_caregiver(self):
        with self.assertRaises(NotFound):
            caregiver_service.send_request("pat1", "doc1")
        with self.assertRaises(NotFound):
            caregiver_service.send_request("pat1", "ghost")

    def test_send_request_when_already_linked(self):
        self.db.docs["users/pat1"]["caregivers"] = ["cg1"]
        with self.assertRaises(Conflict):
            caregiver_service.send_request("pat1", "cg1")

    def test_accept_links_both_sides(self):
        req, _ = caregiver_service.send_request("pat1", "cg1")
        status = caregiver_service.decide_request(req.id, "cg1", accept=True)

        self.assertEqual(status, "accepted")
        stored = self.db.data(f"caregiverRequests/{req.id}")
        self.assertEqual(stored["status"], "accepted")
        self.assertEqual(stored["decidedBy"], "cg1")
        self.assertIn("decidedAt", stored)
        self.assertEqual(self.db.data("users/pat1")["caregivers"], ["cg1"])
        self.assertEqual(self.db.data("users/cg1")["patients"], ["pat1"])

    def test_accept_does_not_duplicate_existing_links(self):
        self.db.docs["users/cg1"]["patients"] = ["pat1"]
        req, _ = caregiver_service.send_request("pat1", "cg1")
        caregiver_service.decide_request(req.id, "cg1", accept=True)
        self.assertEqual(self.db.data("users/cg1")["patients"], ["pat1"])

    def test_reject_does_not_link(self):
        req, _ = caregiver_service.send_request("pat1", "cg1")
        self.assertEqual(caregiver_service.decide_request(req.id, "cg1", accept=False), "rejected")
        self.assertEqual(self.db.data("users/pat1")["caregivers"], [])
        self.assertEqual(self.db.data("users/cg1")["patients"], [])

    def test_decided_request_is_terminal(self):
        req, _ = caregiver_service.send_request("pat1", "cg1")
        caregiver_service.decide_request(req.id, "cg1", accept=False)
        with self.assertRaises(Conflict):
            caregiver_service.decide_request(req.id, "cg1", accept=True)
        self.assertEqual(self.db.data("users/pat1")["caregivers"], [])

    def test_only_addressee_can_decide(self):
        req, _ = caregiver_service.send_request("pat1", "cg1")
        with self.assertRaises(Forbidden):
            caregiver_service.decide_request(req.id, "cg2", accept=True)
        with self.assertRaises(NotFound):
            caregiver_service.decide_request("missing", "cg1", accept=True)

    def test_failed_link_write_leaves_no_partial_state(self):
        req, _ = caregiver_service.send_request("pat1", "cg1")
        self.db.failing_paths.add("users/pat1")

        with self.assertRaises(Exception):
            caregiver_service.decide_request(req.id, "cg1", accept=True)

        self.assertEqual(self.db.data(f"caregiverRequests/{req.id}")["status"], "pending")
        self.assertEqual(self.db.data("users/cg1")["patients"], [])

        # The request is still actionable once the backend recovers
        self.db.failing_paths.clear()
        self.assertEqual(caregiver_service.decide_request(req.id, "cg1", accept=True), "accepted")
        self.assertEqual(self.db.data("users/pat1")["caregivers"], ["cg1"])

    def test_bulk_decide_reports_each_request(self):
        r1, _ = caregiver_service.send_request("pat1", "cg1")
        seed_user(self.db, "pat2", "patient")
        r2, _ = caregiver_service.send_request("pat2", "cg1")
        caregiver_service.decide_request(r2.id, "cg1", accept=False)

        outcomes = caregiver_service.decide_requests([r1.id, r2.id, "nope"], "cg1", accept=True)
        by_id = {o.requestId: o for o in outcomes}
        self.assertTrue(by_id[r1.id].ok)
        self.assertEqual(by_id[r1.id].status, "accepted")
        self.assertFalse(by_id[r2.id].ok)
        self.assertFalse(by_id["nope"].ok)

    def test_incoming_requests_only_pending_for_caregiver(self):
        r1, _ = caregiver_service.send_request("pat1", "cg1")
        caregiver_service.send_request("pat1", "cg2")
        seed_user(self.db, "pat2", "patient")
        r3, _ = caregiver_service.send_request("pat2", "cg1")
        caregiver_service.decide_request(r3.id, "cg1", accept=False)

        inbox = caregiver_service.get_incoming_requests("cg1")
        self.assertEqual([r.id for r in inbox], [r1.id])
        self.assertEqual(inbox[0].patient.fullName, "Pat One")

    def test_revoke_removes_patient_side_and_cleans_up(self):
        req, _ = caregiver_service.send_request("pat1", "cg1")
        caregiver_service.decide_request(req.id, "cg1", accept=True)
        self.db.put("caregivers/cg1/patients/pat1", {"linked": True})

        result = caregiver_service.revoke_access("pat1", "cg1")

        self.assertTrue(result["revoked"])
        self.assertTrue(all(result["cleanup"].values()))
        self.assertEqual(self.db.data("users/pat1")["caregivers"], [])
        self.assertEqual(self.db.data("users/cg1")["patients"], [])
        self.assertIsNone(self.db.data("caregivers/cg1/patients/pat1"))

    def test_revoke_succeeds_when_cleanup_fails(self):
        req, _ = caregiver_service.send_request("pat1", "cg1")
        caregiver_service.decide_request(req.id, "cg1", accept=True)
        self.db.failing_paths.update({"users/cg1", "caregivers/cg1/requests/pat1"})

        with self.assertLogs("smartcare.services.caregiver_service", level="WARNING"):
            result = caregiver_service.revoke_access("pat1", "cg1")

        self.assertTrue(result["revoked"])
        self.assertFalse(result["cleanup"]["caregiverPatients"])
        self.assertFalse(result["cleanup"]["legacyRequest"])
        self.assertTrue(result["cleanup"]["legacyPatient"])
        self.assertEqual(self.db.data("users/pat1")["caregivers"], [])

        # Stale caregiver-side entry no longer grants access
        self.assertEqual(caregiver_service.get_caregiver_patients("cg1"), [])
        cg_session = resolve_session({"uid": "cg1"}, self.db.data("users/cg1"))
        self.assertFalse(caregiver_service.can_act_for_patient(cg_session, "pat1"))

    def test_revoke_primary_failure_propagates(self):
        self.db.failing_paths.add("users/pat1")
        with self.assertRaises(Exception):
            caregiver_service.revoke_access("pat1", "cg1")

    def test_can_act_for_patient(self):
        self.db.docs["users/pat1"]["caregivers"] = ["cg1"]

        def session(uid):
            return resolve_session({"uid": uid}, self.db.data(f"users/{uid}"))

        seed_user(self.db, "adm", "admin")
        seed_user(self.db, "pat2", "patient")
        self.assertTrue(caregiver_service.can_act_for_patient(session("pat1"), "pat1"))
        self.assertFalse(caregiver_service.can_act_for_patient(session("pat2"), "pat1"))
        self.assertTrue(caregiver_service.can_act_for_patient(session("cg1"), "pat1"))
        self.assertFalse(caregiver_service.can_act_for_patient(session("cg2"), "pat1"))
        self.assertFalse(caregiver_service.can_act_for_patient(session("doc1"), "pat1"))
        self.assertTrue(caregiver_service.can_act_for_patient(session("adm"), "pat1"))


class CaregiverRoutesTest(unittest.TestCase):
    def setUp(self):
        self.db, _ = install(self)
        self.client = TestClient(app)
        seed_user(self.db, "pat1", "patient", fullName="Pat One")
        seed_user(self.db, "cg1", "caregiver", email="carla@example.com", fullName="Carla")

    def test_full_request_flow(self):
        r = self.client.get("/caregivers/search", params={"email": "carla"}, headers=auth_header("pat1"))
        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.json()["items"][0]["uid"], "cg1")

        r = self.client.post("/caregivers/requests", json={"caregiverId": "cg1"}, headers=auth_header("pat1"))
        self.assertEqual(r.status_code, 201)
        request_id = r.json()["request"]["id"]
        self.assertTrue(r.json()["created"])

        r = self.client.post("/caregivers/requests", json={"caregiverId": "cg1"}, headers=auth_header("pat1"))
        self.assertFalse(r.json()["created"])
        self.assertEqual(r.json()["request"]["id"], request_id)

        r = self.client.get("/caregivers/requests/incoming", headers=auth_header("cg1"))
        self.assertEqual([i["id"] for i in r.json()["items"]], [request_id])

        r = self.client.post(f"/caregivers/requests/{request_id}/decide", json={"accept": True},
                             headers=auth_header("cg1"))
        self.assertEqual(r.json(), {"id": request_id, "status": "accepted"})

        r = self.client.get("/caregivers/patients", headers=auth_header("cg1"))
        self.assertEqual([p["uid"] for p in r.json()["items"]], ["pat1"])

        r = self.client.get("/caregivers/mine", headers=auth_header("pat1"))
        self.assertEqual([c["uid"] for c in r.json()["items"]], ["cg1"])

        r = self.client.delete("/caregivers/mine/cg1", headers=auth_header("pat1"))
        self.assertEqual(r.status_code, 200)
        self.assertTrue(r.json()["revoked"])

        r = self.client.get("/caregivers/patients", headers=auth_header("cg1"))
        self.assertEqual(r.json()["items"], [])

    def test_deciding_twice_is_a_conflict(self):
        r = self.client.post("/caregivers/requests", json={"caregiverId": "cg1"}, headers=auth_header("pat1"))
        request_id = r.json()["request"]["id"]
        self.client.post(f"/caregivers/requests/{request_id}/decide", json={"accept": False},
                         headers=auth_header("cg1"))
        r = self.client.post(f"/caregivers/requests/{request_id}/decide", json={"accept": True},
                             headers=auth_header("cg1"))
        self.assertEqual(r.status_code, 409)
        self.assertEqual(r.json()["code"], "conflict")

    def test_caregiver_cannot_use_patient_endpoints(self):
        r = self.client.post("/caregivers/requests", json={"caregiverId": "cg1"}, headers=auth_header("cg1"))
        self.assertEqual(r.status_code, 403)
        self.assertEqual(r.json()["redirect"], "/403")
        self.assertEqual(_requests(self.db), {})


if __name__ == "__main__":
    unittest.main()
