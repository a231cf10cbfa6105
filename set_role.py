"""Set the ``role`` custom claim (and mirror it on ``users/{uid}``).

Usage: python set_role.py <uid> <patient|doctor|caregiver|admin>

This is how the first admin account is created; admins cannot self-register.
"""
import sys

from firebase_admin import auth

from smartcare.core.firebase import get_db
from smartcare.models.user import ROLES


def main(argv):
    if len(argv) != 3 or argv[2] not in ROLES:
        print(__doc__)
        return 2

    uid, role = argv[1], argv[2]
    db = get_db()

    auth.set_custom_user_claims(uid, {"role": role})
    update = {"uid": uid, "role": role}
    if role == "admin":
        update["profileCompleted"] = True
    db.collection("users").document(uid).set(update, merge=True)

    print(f"Role claim '{role}' set for UID: {uid}")
    print("Now log out and log in again OR refresh token using getIdToken(true)")
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv))
