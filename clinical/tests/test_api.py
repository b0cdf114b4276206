"""
Integration tests for the clinical API.

They exercise authentication, workspace isolation, the patient
lifecycle, the dashboard and the notification inbox through DRF's
APIClient.

To run the tests:

```
pytest -q clinical/tests
```
"""

from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient, APITestCase

from ..models import AuditEvent, ClinicalAlert, Notification, Patient, User, Workspace, WorkspaceMember


class ClinicalAPITests(APITestCase):
    def setUp(self) -> None:
        """Two workspaces, an owner and a doctor in the first one, a stranger in the second."""
        self.ward = Workspace.objects.create(name="Cardiology", slug="cardiology")
        self.other_ward = Workspace.objects.create(name="Surgery", slug="surgery")

        self.owner = User.objects.create_user(username="owner", password="ownerpass", first_name="Olive")
        self.doctor = User.objects.create_user(username="doctor", password="doctorpass", email="doc@example.org")
        self.stranger = User.objects.create_user(username="stranger", password="strangerpass")
        self.observer = User.objects.create_user(username="observer", password="observerpass")
        WorkspaceMember.objects.create(workspace=self.ward, user=self.owner, role="owner")
        WorkspaceMember.objects.create(workspace=self.ward, user=self.doctor, role="doctor")
        WorkspaceMember.objects.create(workspace=self.ward, user=self.observer, role="observer")
        WorkspaceMember.objects.create(workspace=self.other_ward, user=self.stranger, role="owner")

        self.patient = Patient.objects.create(workspace=self.ward, name="Ada Byron", age=67, gender="female",
                                              assigned_to=self.doctor)

        self.client = APIClient()

    def authenticate(self, user: User) -> None:
        self.client.force_authenticate(user=user)

    # -----------------------------------------------------------------
    # Authentication
    # -----------------------------------------------------------------
    def test_login_returns_token_and_jwt_pair(self):
        resp = self.client.post(reverse("login_view"), {"username": "doctor", "password": "doctorpass"},
                                format="json")
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        data = resp.data["data"]
        self.assertTrue(data["token"])
        self.assertTrue(data["jwt_access"])
        self.assertTrue(data["jwt_refresh"])
        self.assertEqual(data["user"]["username"], "doctor")

        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {data['jwt_access']}")
        me = self.client.get(reverse("me_view"))
        self.assertEqual(me.status_code, status.HTTP_200_OK)
        self.assertEqual(me.data["data"]["id"], self.doctor.id)

        self.client.credentials(HTTP_AUTHORIZATION=f"Token {data['token']}")
        self.assertEqual(self.client.get(reverse("me_view")).status_code, status.HTTP_200_OK)

    def test_login_with_wrong_password(self):
        resp = self.client.post(reverse("login_view"), {"username": "doctor", "password": "nope"}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertFalse(resp.data["ok"])
        self.assertEqual(resp.data["error"]["code"], "authentication_failed")
        self.assertTrue(AuditEvent.objects.filter(action="login", detail__result="fail").exists())

    def test_refresh_and_logout(self):
        login = self.client.post(reverse("login_view"), {"username": "doctor", "password": "doctorpass"},
                                 format="json").data["data"]
        refreshed = self.client.post(reverse("refresh_view"), {"refresh": login["jwt_refresh"]}, format="json")
        self.assertEqual(refreshed.status_code, status.HTTP_200_OK)
        self.assertIn("jwt_access", refreshed.data["data"])

        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {login['jwt_access']}")
        out = self.client.post(reverse("logout_view"), {}, format="json")
        self.assertEqual(out.status_code, status.HTTP_200_OK)
        self.assertGreaterEqual(out.data["data"]["blacklisted"], 1)

        self.client.credentials()
        again = self.client.post(reverse("refresh_view"), {"refresh": login["jwt_refresh"]}, format="json")
        self.assertEqual(again.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_anonymous_requests_are_rejected(self):
        resp = self.client.get(reverse("workspaces"))
        self.assertEqual(resp.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertFalse(resp.data["ok"])

    # -----------------------------------------------------------------
    # Workspaces
    # -----------------------------------------------------------------
    def test_create_workspace_makes_creator_owner(self):
        self.authenticate(self.doctor)
        resp = self.client.post(reverse("workspaces"), {"name": "Night team"}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_201_CREATED)
        ws_id = resp.data["data"]["id"]
        self.assertEqual(WorkspaceMember.objects.get(workspace_id=ws_id, user=self.doctor).role, "owner")

        listed = self.client.get(reverse("workspaces")).data["data"]
        self.assertEqual({w["name"] for w in listed}, {"Cardiology", "Night team"})

    def test_add_member_sends_invite(self):
        newcomer = User.objects.create_user(username="newcomer", password="x", email="new@example.org")
        self.authenticate(self.owner)
        resp = self.client.post(reverse("workspace_members", args=[self.ward.id]),
                                {"email": "new@example.org", "role": "nurse"}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_201_CREATED)
        self.assertEqual(resp.data["data"]["role"], "nurse")
        invite = Notification.objects.get(user=newcomer)
        self.assertEqual(invite.type, "workspace_invite")
        self.assertEqual(invite.data["workspace_id"], self.ward.id)

    def test_doctor_cannot_manage_members(self):
        self.authenticate(self.doctor)
        resp = self.client.post(reverse("workspace_members", args=[self.ward.id]),
                                {"user_id": self.stranger.id}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_403_FORBIDDEN)

    def test_last_owner_cannot_leave(self):
        self.authenticate(self.owner)
        resp = self.client.delete(reverse("workspace_member_detail", args=[self.ward.id, self.owner.id]))
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        resp = self.client.delete(reverse("workspace_member_detail", args=[self.ward.id, self.doctor.id]))
        self.assertEqual(resp.status_code, status.HTTP_204_NO_CONTENT)
        self.assertEqual(WorkspaceMember.objects.get(workspace=self.ward, user=self.doctor).status, "inactive")

    def test_admin_cannot_take_ownership(self):
        admin = User.objects.create_user(username="admin", password="adminpass")
        WorkspaceMember.objects.create(workspace=self.ward, user=admin, role="admin")
        self.authenticate(admin)

        resp = self.client.patch(reverse("workspace_member_detail", args=[self.ward.id, admin.id]),
                                 {"role": "owner"}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_403_FORBIDDEN)
        resp = self.client.patch(reverse("workspace_member_detail", args=[self.ward.id, self.owner.id]),
                                 {"role": "observer"}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_403_FORBIDDEN)
        resp = self.client.patch(reverse("workspace_member_detail", args=[self.ward.id, self.doctor.id]),
                                 {"role": "owner"}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_403_FORBIDDEN)
        resp = self.client.delete(reverse("workspace_member_detail", args=[self.ward.id, self.owner.id]))
        self.assertEqual(resp.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(WorkspaceMember.objects.get(workspace=self.ward, user=self.owner).role, "owner")

        resp = self.client.delete(reverse("workspace_detail", args=[self.ward.id]))
        self.assertEqual(resp.status_code, status.HTTP_403_FORBIDDEN)
        self.ward.refresh_from_db()
        self.assertIsNone(self.ward.deleted_at)

        # admins still manage non-owner roles
        resp = self.client.patch(reverse("workspace_member_detail", args=[self.ward.id, self.doctor.id]),
                                 {"role": "nurse"}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data["data"]["role"], "nurse")

    def test_owner_can_hand_over_ownership(self):
        self.authenticate(self.owner)
        resp = self.client.patch(reverse("workspace_member_detail", args=[self.ward.id, self.doctor.id]),
                                 {"role": "owner"}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        resp = self.client.patch(reverse("workspace_member_detail", args=[self.ward.id, self.owner.id]),
                                 {"role": "admin"}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_403_FORBIDDEN)

    # -----------------------------------------------------------------
    # Patients
    # -----------------------------------------------------------------
    def test_create_patient_notifies_workspace(self):
        self.authenticate(self.owner)
        resp = self.client.post(reverse("workspace_patients", args=[self.ward.id]),
                                {"name": "<b>Grace</b> Hopper", "age": 80, "assigned_to": self.doctor.id},
                                format="json")
        self.assertEqual(resp.status_code, status.HTTP_201_CREATED)
        self.assertEqual(resp.data["data"]["name"], "Grace Hopper")
        types = set(Notification.objects.filter(user=self.doctor).values_list("type", flat=True))
        self.assertEqual(types, {"patient_created", "patient_assigned"})
        self.assertFalse(Notification.objects.filter(user=self.owner).exists())

    def test_assignee_must_be_member(self):
        self.authenticate(self.owner)
        resp = self.client.post(reverse("workspace_patients", args=[self.ward.id]),
                                {"name": "Alan", "assigned_to": self.stranger.id}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(resp.data["error"]["code"], "invalid")

    def test_workspace_isolation(self):
        self.authenticate(self.stranger)
        self.assertEqual(self.client.get(reverse("patient_detail", args=[self.patient.id])).status_code,
                         status.HTTP_403_FORBIDDEN)
        self.assertEqual(self.client.get(reverse("workspace_patients", args=[self.ward.id])).status_code,
                         status.HTTP_403_FORBIDDEN)

    def test_observer_reads_but_cannot_write(self):
        self.authenticate(self.observer)
        self.assertEqual(self.client.get(reverse("patient_detail", args=[self.patient.id])).status_code,
                         status.HTTP_200_OK)
        resp = self.client.patch(reverse("patient_detail", args=[self.patient.id]), {"age": 68}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_403_FORBIDDEN)

    def test_list_patients_with_pagination(self):
        for i in range(3):
            Patient.objects.create(workspace=self.ward, name=f"Extra {i}")
        self.authenticate(self.doctor)
        resp = self.client.get(reverse("workspace_patients", args=[self.ward.id]), {"limit": 2, "page": 2})
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data["pagination"]["total"], 4)
        self.assertEqual(resp.data["pagination"]["total_pages"], 2)
        self.assertEqual(len(resp.data["data"]), 2)

    def test_workflow_and_discharge(self):
        self.authenticate(self.doctor)
        resp = self.client.post(reverse("patient_workflow", args=[self.patient.id]),
                                {"workflow_state": "treatment"}, format="json")
        self.assertEqual(resp.data["data"]["workflow_state"], "treatment")

        resp = self.client.post(reverse("patient_discharge", args=[self.patient.id]), {}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data["data"]["workflow_state"], "discharged")
        self.assertIsNotNone(resp.data["data"]["discharge_date"])
        self.assertTrue(Notification.objects.filter(user=self.owner, type="patient_discharged").exists())

        again = self.client.post(reverse("patient_discharge", args=[self.patient.id]), {}, format="json")
        self.assertEqual(again.status_code, status.HTTP_400_BAD_REQUEST)
        listed = self.client.get(reverse("workspace_patients", args=[self.ward.id])).data["data"]
        self.assertEqual(listed, [])

    def test_discharged_patient_is_read_only(self):
        self.authenticate(self.doctor)
        self.client.post(reverse("patient_discharge", args=[self.patient.id]), {}, format="json")

        resp = self.client.patch(reverse("patient_detail", args=[self.patient.id]),
                                 {"workflow_state": "treatment"}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        resp = self.client.post(reverse("patient_tests", args=[self.patient.id]),
                                {"test_name": "CBC", "results": {"wbc": 11.2}}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        resp = self.client.post(reverse("patient_data", args=[self.patient.id]),
                                {"data_type": "vital_signs", "content": {"heart_rate": 80}}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)

        self.patient.refresh_from_db()
        self.assertEqual(self.patient.workflow_state, "discharged")
        self.assertFalse(self.patient.tests.exists())
        self.assertFalse(self.patient.data.exists())

    def test_recording_critical_vitals_raises_alert(self):
        self.authenticate(self.doctor)
        resp = self.client.post(reverse("patient_data", args=[self.patient.id]), {
            "data_type": "vital_signs",
            "content": {"heart_rate": 150, "systolic_bp": 120, "temperature": 36.9},
        }, format="json")
        self.assertEqual(resp.status_code, status.HTTP_201_CREATED)
        self.assertEqual(len(resp.data["data"]["alerts"]), 1)
        self.assertEqual(resp.data["data"]["alerts"][0]["severity"], "critical")
        self.assertEqual(ClinicalAlert.objects.filter(patient=self.patient).count(), 1)

        records = self.client.get(reverse("patient_data", args=[self.patient.id]), {"type": "vital_signs"})
        self.assertEqual(len(records.data["data"]), 1)

    def test_soft_delete_hides_patient(self):
        self.authenticate(self.owner)
        resp = self.client.delete(reverse("patient_detail", args=[self.patient.id]))
        self.assertEqual(resp.status_code, status.HTTP_204_NO_CONTENT)
        self.patient.refresh_from_db()
        self.assertIsNotNone(self.patient.deleted_at)
        self.assertEqual(self.client.get(reverse("patient_detail", args=[self.patient.id])).status_code,
                         status.HTTP_404_NOT_FOUND)

    # -----------------------------------------------------------------
    # Monitoring
    # -----------------------------------------------------------------
    def test_monitoring_config_lifecycle(self):
        self.authenticate(self.doctor)
        url = reverse("patient_monitoring", args=[self.patient.id])
        self.assertIsNone(self.client.get(url).data["data"])
        created = self.client.post(url, {"alert_thresholds": {"heart_rate": {"critical_max": 120}}}, format="json")
        self.assertEqual(created.status_code, status.HTTP_201_CREATED)
        conflict = self.client.post(url, {}, format="json")
        self.assertEqual(conflict.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(conflict.data["error"]["code"], "monitoring_config_exists")
        updated = self.client.put(url, {"is_active": False}, format="json")
        self.assertFalse(updated.data["data"]["is_active"])

    def test_alert_actions(self):
        self.authenticate(self.doctor)
        self.client.post(reverse("patient_check_vitals", args=[self.patient.id]),
                         {"vital_signs": {"oxygen_saturation": 82}}, format="json")
        alert = ClinicalAlert.objects.get(patient=self.patient)
        listed = self.client.get(reverse("alerts_list"), {"workspace_id": self.ward.id})
        self.assertEqual([a["id"] for a in listed.data["data"]], [alert.id])

        resp = self.client.post(reverse("alert_action", args=[alert.id]),
                                {"action": "resolve", "notes": "Oxygen titrated"}, format="json")
        self.assertEqual(resp.data["data"]["status"], "resolved")
        resp = self.client.post(reverse("alert_action", args=[alert.id]), {"action": "dismiss"}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)

        stats = self.client.get(reverse("alert_statistics"), {"workspace_id": self.ward.id})
        self.assertEqual(stats.data["data"]["resolution_rate"], 1.0)

    # -----------------------------------------------------------------
    # Dashboard & notifications
    # -----------------------------------------------------------------
    def test_dashboard_counts(self):
        Patient.objects.create(workspace=self.ward, name="Second", workflow_state="observation")
        Notification.objects.create(user=self.doctor, type="system", title="hello")
        self.authenticate(self.doctor)
        resp = self.client.get(reverse("workspace_dashboard", args=[self.ward.id]))
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        data = resp.data["data"]
        self.assertEqual(data["patients"]["total"], 2)
        self.assertEqual(data["patients"]["by_workflow_state"]["observation"], 1)
        self.assertEqual(data["unread_notifications"], 1)

        # cached overview, live unread count
        Patient.objects.create(workspace=self.ward, name="Third")
        Notification.objects.create(user=self.doctor, type="system", title="again")
        cached = self.client.get(reverse("workspace_dashboard", args=[self.ward.id])).data["data"]
        self.assertEqual(cached["patients"]["total"], 2)
        self.assertEqual(cached["unread_notifications"], 2)
        fresh = self.client.get(reverse("workspace_dashboard", args=[self.ward.id]), {"refresh": "1"}).data["data"]
        self.assertEqual(fresh["patients"]["total"], 3)

    def test_notification_inbox(self):
        mine = Notification.objects.create(user=self.doctor, type="system", title="mine", severity="high")
        theirs = Notification.objects.create(user=self.owner, type="system", title="theirs")
        self.authenticate(self.doctor)

        listed = self.client.get(reverse("notifications_list"), {"severity": "high,critical"})
        self.assertEqual([n["id"] for n in listed.data["data"]], [mine.id])
        self.assertEqual(self.client.post(reverse("notification_read", args=[theirs.id])).status_code,
                         status.HTTP_404_NOT_FOUND)
        read = self.client.post(reverse("notification_read", args=[mine.id]))
        self.assertTrue(read.data["data"]["is_read"])
        stats = self.client.get(reverse("notifications_stats")).data["data"]
        self.assertEqual(stats["unread"], 0)

        prefs = self.client.patch(reverse("notification_preferences"),
                                  {"quiet_hours_enabled": True, "quiet_hours_start": "23:00"}, format="json")
        self.assertEqual(prefs.data["data"]["quiet_hours_start"], "23:00")
        self.assertTrue(prefs.data["data"]["quiet_hours_enabled"])

        cleared = self.client.delete(reverse("notifications_list"))
        self.assertEqual(cleared.data["data"]["deleted"], 1)

    def test_healthz(self):
        resp = self.client.get(reverse("healthz"))
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json(), {"ok": True, "db": True})
