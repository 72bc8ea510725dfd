"""
Campus Scheduler — Bulk Update Job Tests
==========================================

What we test (PUT /appointments/bulk + GET /appointments/jobs/{id}):
    ✅ 202 with jobId and statusUrl
    ✅ Every item applied; job completed with the updated count
    ✅ A failing item fails the job; earlier items stay applied
    ✅ With several workers, a job still runs after an earlier async update
       to the same appointment
    ✅ Empty or malformed payloads are rejected with 400
    ✅ Unknown job id → 404
"""

import pytest

APPOINTMENT_PAYLOAD = {
    "startTime": "2026-03-02T09:00:00Z",
    "endTime": "2026-03-02T09:30:00Z",
}


async def _create_appointment(client, schedule_id, user_id):
    response = await client.post(
        "/appointments",
        json={**APPOINTMENT_PAYLOAD, "scheduleId": schedule_id, "userId": user_id},
    )
    assert response.status_code == 201, response.text
    return response.json()


class TestBulkUpdate:

    @pytest.mark.asyncio
    async def test_job_completes(self, app, client, schedule):
        a = await _create_appointment(client, schedule["id"], "student-1")
        b = await _create_appointment(client, schedule["id"], "student-2")

        response = await client.put(
            "/appointments/bulk",
            json={"appointments": [
                {"id": a["id"], "status": "completed"},
                {"id": b["id"], "notes": "moved online"},
            ]},
        )

        assert response.status_code == 202
        body = response.json()
        assert body["message"] == "Update job accepted"
        assert body["statusUrl"].endswith(f"/appointments/jobs/{body['jobId']}")
        assert response.headers["Location"] == body["statusUrl"]

        await app.state.task_queue.join()

        job = (await client.get(body["statusUrl"])).json()
        assert job["status"] == "completed"
        assert job["operation"] == "bulk_update"
        assert job["result"] == {"updated": 2}

        assert (await client.get(f"/appointments/{a['id']}")).json()["status"] == "completed"
        assert (await client.get(f"/appointments/{b['id']}")).json()["notes"] == "moved online"

    @pytest.mark.asyncio
    async def test_failing_item_fails_job_and_keeps_earlier_items(self, app, client, schedule):
        a = await _create_appointment(client, schedule["id"], "student-1")

        response = await client.put(
            "/appointments/bulk",
            json={"appointments": [
                {"id": a["id"], "status": "cancelled"},
                {"id": 9999, "status": "cancelled"},
            ]},
        )
        assert response.status_code == 202

        await app.state.task_queue.join()

        job = (await client.get(response.json()["statusUrl"])).json()
        assert job["status"] == "failed"
        assert "9999" in job["error"]
        assert "result" not in job

        assert (await client.get(f"/appointments/{a['id']}")).json()["status"] == "cancelled"

    @pytest.mark.asyncio
    async def test_queued_job_reports_processing(self, app, client, schedule):
        a = await _create_appointment(client, schedule["id"], "student-1")
        await app.state.task_queue.stop()

        response = await client.put(
            "/appointments/bulk", json={"appointments": [{"id": a["id"], "status": "completed"}]}
        )
        job = await client.get(response.json()["statusUrl"])

        assert job.status_code == 200
        assert job.json()["status"] == "processing"

        await app.state.task_queue.start()
        await app.state.task_queue.join()
        assert (await client.get(response.json()["statusUrl"])).json()["status"] == "completed"

    @pytest.mark.asyncio
    async def test_empty_list_rejected(self, client):
        response = await client.put("/appointments/bulk", json={"appointments": []})

        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"

    @pytest.mark.asyncio
    async def test_item_without_id_rejected(self, client):
        response = await client.put(
            "/appointments/bulk", json={"appointments": [{"status": "completed"}]}
        )
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_unknown_job_is_404(self, client):
        response = await client.get("/appointments/jobs/not-a-job")
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_waits_for_earlier_async_update_on_same_appointment(
        self, app, client, schedule, two_workers
    ):
        a = await _create_appointment(client, schedule["id"], "student-1")
        app.state.settings = app.state.settings.model_copy(
            update={"async_update_delay_seconds": 0.3}
        )

        single = await client.put(f"/appointments/{a['id']}/async", json={"notes": "from async update"})
        assert single.status_code == 202
        bulk = await client.put(
            "/appointments/bulk", json={"appointments": [{"id": a["id"], "notes": "from bulk job"}]}
        )
        assert bulk.status_code == 202

        await two_workers.join()

        assert (await client.get(single.json()["statusUrl"])).json()["status"] == "completed"
        assert (await client.get(bulk.json()["statusUrl"])).json()["status"] == "completed"
        assert (await client.get(f"/appointments/{a['id']}")).json()["notes"] == "from bulk job"
