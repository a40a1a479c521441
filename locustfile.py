import logging
import random
import string

from locust import HttpUser, TaskSet, between, task

# every simulated member registers from the same address, so start the
# server with a large AUTH_RATE_LIMIT for load runs

# seeded zones: (facility_id, zone_id)
ZONES = [(1, 1), (1, 2), (1, 3), (2, 4), (2, 5)]


# Helper Functions
def generate_email() -> str:
    """Random throwaway address on the allowed domain"""
    suffix = "".join(random.choices(string.ascii_lowercase + string.digits, k=10))
    return f"load-{suffix}@nyu.edu"


def select_zone():
    return random.choice(ZONES)


class GymMemberTasks(TaskSet):
    client: HttpUser
    queue_id: int = None
    check_count: int = 0
    max_checks: int = 10

    def on_start(self):
        """Register, then join one zone line"""
        self.facility_id, self.zone_id = select_zone()
        self.leave_at = random.randint(5, 7)
        self.headers = {}
        self.user_id = None

        res = self.client.post(
            "/api/auth/register",
            json={"name": "Load Tester", "email": generate_email(), "password": "loadtest1"},
        )
        if res.status_code != 201:
            logging.error(f"Registration failed: {res.text}")
            self.interrupt()
            return

        body = res.json()
        self.user_id = body["data"]["id"]
        self.headers = {"Authorization": f"Bearer {body['token']}"}
        self.join_queue()

    @task(5)
    def get_zone_line(self):
        """Line of the zone as kept in Redis"""
        res = self.client.get(f"/api/zones/{self.zone_id}/queue", name="zone line(REDIS)")
        if res.status_code != 200:
            logging.error(f"Zone line lookup failed: {res.text}")

    @task(3)
    def get_facility_zones(self):
        res = self.client.get(
            f"/api/zones?facilityId={self.facility_id}", name="facility zones(RDB)"
        )
        if res.status_code != 200:
            logging.error(f"Zone listing failed: {res.text}")

    @task(10)
    def check_my_position(self):
        """Poll our own entry and leave the line after a few checks"""
        if self.queue_id and self.check_count < self.max_checks:
            res = self.client.get(
                f"/api/queues/{self.queue_id}", headers=self.headers, name="my queue entry"
            )
            self.check_count += 1

            entry = res.json().get("data") or {}
            logging.info(
                f"[queue {self.queue_id}] check {self.check_count} | "
                f"position {entry.get('position')} | wait {entry.get('estimatedWait')} min"
            )

            if self.check_count == self.leave_at:
                self.leave_queue()
        else:
            self.interrupt()

    def join_queue(self):
        res = self.client.post(
            "/api/queues",
            json={"userId": self.user_id, "zoneId": self.zone_id, "facilityId": self.facility_id},
            headers=self.headers,
        )
        if res.status_code == 201:
            self.queue_id = res.json().get("data", {}).get("id")
            logging.info(f"Joined zone {self.zone_id}: queue {self.queue_id}")
        else:
            logging.error(f"Joining queue failed: {res.text}")
            self.interrupt()

    def leave_queue(self):
        if self.queue_id:
            res = self.client.delete(
                f"/api/queues/{self.queue_id}", headers=self.headers, name="leave queue"
            )
            if res.status_code == 200:
                logging.info(f"Left queue {self.queue_id}")
            else:
                logging.error(f"Leaving queue failed: {res.text}")

            self.check_count = self.max_checks
        logging.info(f"User {self.user_id} with queue {self.queue_id} done")
        self.user.stop(True)


class GymMember(HttpUser):
    tasks = [GymMemberTasks]
    host = "http://localhost:8000"
    wait_time = between(1, 3)
