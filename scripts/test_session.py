import unittest

from smartcare.api.deps import check_access
from smartcare.core.errors import AccessDenied
from smartcare.services.session import normalize_role, resolve_session

CLAIMS = {"uid": "u1", "email": "u1@example.com"}


class TestNormalizeRole(unittest.TestCase):
    def test_known_roles(self):
        for role in ("patient", "doctor", "caregiver", "admin"):
            self.assertEqual(normalize_role(role), role)

    def test_unknown_values(self):
        for value in ("nurse", "", None, 3, ["doctor"], "Doctor"):
            self.assertIsNone(normalize_role(value))


class TestResolveSession(unittest.TestCase):
    def test_missing_document_uses_claim_role(self):
        s = resolve_session({**CLAIMS, "role": "caregiver"}, None)
        self.assertEqual(s.role, "caregiver")
        self.assertFalse(s.profile_completed)
        self.assertIsNone(s.approved)
        self.assertEqual(s.landing_route(), "/setup-profile")

    def test_document_role_wins_over_claim(self):
        s = resolve_session({**CLAIMS, "role": "admin"}, {"role": "patient", "profileCompleted": True})
        self.assertEqual(s.role, "patient")
        self.assertTrue(s.is_patient)
        self.assertFalse(s.is_admin)

    def test_invalid_document_role_falls_back_to_claim(self):
        s = resolve_session({**CLAIMS, "role": "doctor"}, {"role": "superuser"})
        self.assertEqual(s.role, "doctor")

    def test_no_role_anywhere(self):
        s = resolve_session(CLAIMS, {"email": "u1@example.com"})
        self.assertIsNone(s.role)
        self.assertEqual(s.landing_route(), "/setup-profile")

    def test_approved_only_tracked_for_doctors(self):
        doctor = resolve_session(CLAIMS, {"role": "doctor", "approved": False, "profileCompleted": True})
        patient = resolve_session(CLAIMS, {"role": "patient", "approved": True, "profileCompleted": True})
        self.assertIs(doctor.approved, False)
        self.assertIsNone(patient.approved)

    def test_landing_routes(self):
        cases = [
            ({"role": "doctor", "approved": False, "profileCompleted": True}, "/awaiting-approval"),
            ({"role": "doctor", "approved": True, "profileCompleted": True}, "/doctor/dashboard"),
            ({"role": "patient", "profileCompleted": False}, "/setup-profile"),
            ({"role": "caregiver", "profileCompleted": True}, "/caregiver/dashboard"),
            ({"role": "admin"}, "/admin"),
            ({"role": "patient", "profileCompleted": True, "blocked": True}, "/403"),
        ]
        for doc, expected in cases:
            with self.subTest(doc=doc):
                self.assertEqual(resolve_session(CLAIMS, doc).landing_route(), expected)


class TestCheckAccess(unittest.TestCase):
    def _denied(self, doc, allowed, **kw):
        with self.assertRaises(AccessDenied) as ctx:
            check_access(resolve_session(CLAIMS, doc), allowed, **kw)
        return ctx.exception

    def test_wrong_role(self):
        err = self._denied({"role": "caregiver", "profileCompleted": True}, ["patient"])
        self.assertEqual(err.redirect, "/403")
        self.assertEqual(err.status_code, 403)

    def test_null_role_never_passes(self):
        err = self._denied({"profileCompleted": True}, ["patient", "doctor", "caregiver", "admin"])
        self.assertEqual(err.code, "no_role")
        self.assertEqual(err.redirect, "/setup-profile")

    def test_incomplete_profile(self):
        err = self._denied({"role": "patient"}, ["patient"])
        self.assertEqual(err.redirect, "/setup-profile")

    def test_admin_skips_profile_check(self):
        s = check_access(resolve_session(CLAIMS, {"role": "admin"}), ["admin"])
        self.assertTrue(s.is_admin)

    def test_unapproved_doctor(self):
        err = self._denied({"role": "doctor", "approved": False, "profileCompleted": True}, ["doctor"])
        self.assertEqual(err.redirect, "/awaiting-approval")

    def test_doctor_without_approval_flag_passes(self):
        s = check_access(resolve_session(CLAIMS, {"role": "doctor", "profileCompleted": True}), ["doctor"])
        self.assertIsNone(s.approved)

    def test_blocked_checked_first(self):
        err = self._denied({"role": "patient", "profileCompleted": True, "blocked": True}, ["patient"])
        self.assertEqual(err.code, "blocked")

    def test_checks_can_be_relaxed(self):
        s = check_access(
            resolve_session(CLAIMS, {"role": "doctor", "approved": False}),
            ["doctor"], require_profile=False, require_approval=False,
        )
        self.assertTrue(s.is_doctor)


if __name__ == "__main__":
    unittest.main()
