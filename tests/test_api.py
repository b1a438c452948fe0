import base64

from educare.identity import IdentityProvider


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def test_health(client):
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


class TestSignupAndLogin:
    def test_signup_creates_empty_profile(self, client):
        response = client.post(
            "/api/signup",
            json={"name": "Ana", "email": "a@x.com", "password": "pw123456"},
        )
        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        user = data["user"]
        assert user["id"] == data["userId"]
        assert user["name"] == "Ana"
        assert user["email"] == "a@x.com"
        assert user["totalPoints"] == 0
        assert user["profileCompleted"] is False
        assert user["quizzesTaken"] == []
        assert user["activities"] == []

    def test_duplicate_email_is_rejected(self, client, signed_up):
        response = client.post(
            "/api/signup",
            json={"name": "Ana", "email": "a@x.com", "password": "other-pass"},
        )
        assert response.status_code == 400
        assert "already been registered" in response.json()["error"]

    def test_short_password_is_rejected(self, client):
        response = client.post(
            "/api/signup", json={"name": "Bo", "email": "b@x.com", "password": "123"}
        )
        assert response.status_code == 400
        assert "error" in response.json()

    def test_login_returns_token_and_profile(self, client, signed_up):
        user_id, _ = signed_up
        response = client.post(
            "/api/login", json={"email": "a@x.com", "password": "pw123456"}
        )
        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["accessToken"]
        assert data["user"]["id"] == user_id

    def test_login_with_wrong_password(self, client, signed_up):
        response = client.post(
            "/api/login", json={"email": "a@x.com", "password": "wrong-pass"}
        )
        assert response.status_code == 400
        assert response.json() == {"error": "Invalid login credentials"}

    def test_login_without_profile_record(self, client, store):
        IdentityProvider(store, secret="unused").create_user("ghost@x.com", "pw123456")
        response = client.post(
            "/api/login", json={"email": "ghost@x.com", "password": "pw123456"}
        )
        assert response.status_code == 404
        assert response.json() == {"error": "User profile not found"}

    def test_malformed_body_is_a_server_error(self, client):
        response = client.post("/api/signup", json={"name": "Ana"})
        assert response.status_code == 500
        assert response.json()["error"].startswith("Server error")


def test_end_to_end_profile_and_quiz(client, signed_up):
    user_id, token = signed_up

    response = client.post(
        "/api/complete-profile",
        json={"avatar": "girl1", "age": 5, "dob": "2019-01-01"},
        headers=bearer(token),
    )
    assert response.status_code == 200
    user = response.json()["user"]
    assert user["profileCompleted"] is True
    assert user["avatar"] == "girl1"
    assert user["age"] == 5
    assert user["dob"] == "2019-01-01"

    response = client.post(
        "/api/submit-quiz",
        json={"category": "numbers", "score": 150, "totalQuestions": 3, "difficulty": "mixed"},
        headers=bearer(token),
    )
    assert response.status_code == 200
    user = response.json()["user"]
    assert user["totalPoints"] == 150
    assert len(user["quizzesTaken"]) == 1
    result = user["quizzesTaken"][0]
    assert result["category"] == "numbers"
    assert result["score"] == 150
    assert result["totalQuestions"] == 3
    assert result["difficulty"] == "mixed"
    assert result["date"]

    fetched = client.get(f"/api/profile/{user_id}").json()["user"]
    assert fetched == user


def test_total_points_match_history(client, signed_up):
    user_id, token = signed_up
    client.post(
        "/api/submit-quiz",
        json={"category": "all", "score": 275, "totalQuestions": 10, "difficulty": "mixed"},
        headers=bearer(token),
    )
    for name, score in [("Memory Match", 75), ("Count the Items", 100)]:
        response = client.post(
            "/api/save-activity-score",
            json={"activityType": "game", "activityName": name, "score": score},
            headers=bearer(token),
        )
        assert response.status_code == 200

    user = client.get(f"/api/profile/{user_id}").json()["user"]
    assert [a["activityName"] for a in user["activities"]] == [
        "Memory Match",
        "Count the Items",
    ]
    recorded = sum(q["score"] for q in user["quizzesTaken"]) + sum(
        a["score"] for a in user["activities"]
    )
    assert user["totalPoints"] == recorded == 450


class TestAuthorization:
    def test_missing_token(self, client, signed_up):
        response = client.post(
            "/api/complete-profile", json={"avatar": "boy1", "age": 6, "dob": "2018-05-05"}
        )
        assert response.status_code == 401
        assert response.json() == {"error": "Unauthorized"}

    def test_garbage_token(self, client, signed_up):
        response = client.post(
            "/api/save-activity-score",
            json={"activityType": "game", "activityName": "Find the Pair", "score": 80},
            headers=bearer("not-a-token"),
        )
        assert response.status_code == 401

    def test_profile_lookup_for_unknown_user(self, client):
        response = client.get("/api/profile/nobody")
        assert response.status_code == 404
        assert response.json() == {"error": "User profile not found"}


class TestUpdateProfile:
    def test_name_only(self, client, signed_up):
        _, token = signed_up
        response = client.post(
            "/api/update-profile", data={"name": "Ana Maria"}, headers=bearer(token)
        )
        assert response.status_code == 200
        user = response.json()["user"]
        assert user["name"] == "Ana Maria"
        assert user["photoUrl"] is None

    def test_photo_is_inlined_as_data_uri(self, client, signed_up):
        _, token = signed_up
        photo = b"\x89PNG\r\n\x1a\nfake"
        response = client.post(
            "/api/update-profile",
            files={"photo": ("me.png", photo, "image/png")},
            headers=bearer(token),
        )
        assert response.status_code == 200
        user = response.json()["user"]
        assert user["name"] == "Ana"
        assert user["photoUrl"] == "data:image/png;base64," + base64.b64encode(
            photo
        ).decode("ascii")


class TestChangePassword:
    def test_wrong_current_password(self, client, signed_up):
        _, token = signed_up
        response = client.post(
            "/api/change-password",
            json={"currentPassword": "nope-nope", "newPassword": "newpass99"},
            headers=bearer(token),
        )
        assert response.status_code == 400
        assert response.json() == {"error": "Current password is incorrect"}

    def test_password_is_replaced(self, client, signed_up):
        _, token = signed_up
        response = client.post(
            "/api/change-password",
            json={"currentPassword": "pw123456", "newPassword": "newpass99"},
            headers=bearer(token),
        )
        assert response.status_code == 200
        assert response.json()["message"] == "Password updated successfully"

        old = client.post("/api/login", json={"email": "a@x.com", "password": "pw123456"})
        new = client.post("/api/login", json={"email": "a@x.com", "password": "newpass99"})
        assert old.status_code == 400
        assert new.status_code == 200


class TestDeleteAccount:
    def test_profile_and_history_are_removed(self, client, signed_up, fake_redis):
        user_id, token = signed_up
        fake_redis.set(f"userquiz:{user_id}:1", '{"score": 50}')
        fake_redis.set("userquiz:someone-else:1", '{"score": 50}')

        response = client.delete("/api/delete-account", headers=bearer(token))
        assert response.status_code == 200
        assert response.json()["message"] == "Account deleted successfully"

        assert client.get(f"/api/profile/{user_id}").status_code == 404
        assert f"userquiz:{user_id}:1" not in fake_redis.data
        assert "userquiz:someone-else:1" in fake_redis.data

    def test_credentials_and_token_stop_working(self, client, signed_up):
        _, token = signed_up
        client.delete("/api/delete-account", headers=bearer(token))

        login = client.post("/api/login", json={"email": "a@x.com", "password": "pw123456"})
        assert login.status_code == 400
        again = client.delete("/api/delete-account", headers=bearer(token))
        assert again.status_code == 401


class TestQuizQuestions:
    def test_empty_before_seeding(self, client):
        response = client.get("/api/quiz-questions")
        assert response.status_code == 200
        assert response.json() == {"success": True, "questions": []}

    def test_seeding_is_idempotent(self, client, fake_redis):
        first = client.post("/api/init-quiz-data")
        second = client.post("/api/init-quiz-data")
        assert first.json() == {"success": True, "message": "42 quiz questions initialized"}
        assert second.status_code == 200
        quiz_keys = [k for k in fake_redis.data if k.startswith("quiz:")]
        assert len(quiz_keys) == 42

    def test_category_filter_and_count(self, client):
        client.post("/api/init-quiz-data")
        response = client.get("/api/quiz-questions", params={"category": "numbers", "count": 3})
        questions = response.json()["questions"]
        assert len(questions) == 3
        assert {q["category"] for q in questions} == {"numbers"}
        assert len({q["id"] for q in questions}) == 3

    def test_count_larger_than_category(self, client):
        client.post("/api/init-quiz-data")
        response = client.get(
            "/api/quiz-questions", params={"category": "animals", "count": 50}
        )
        questions = response.json()["questions"]
        assert len(questions) == 6
        for q in questions:
            assert q["correctAnswer"] in q["options"]

    def test_default_is_ten_from_all_categories(self, client):
        client.post("/api/init-quiz-data")
        questions = client.get("/api/quiz-questions").json()["questions"]
        assert len(questions) == 10
        assert len({q["id"] for q in questions}) == 10

    def test_unknown_category(self, client):
        client.post("/api/init-quiz-data")
        response = client.get("/api/quiz-questions", params={"category": "planets"})
        assert response.json()["questions"] == []


class TestContent:
    def test_topics(self, client):
        topics = client.get("/api/content").json()["topics"]
        assert [t["id"] for t in topics] == [
            "alphabet",
            "number_spellings",
            "two_letter_words",
            "three_letter_words",
            "shapes",
            "stories",
            "poems",
        ]
        by_id = {t["id"]: t for t in topics}
        assert by_id["poems"]["name"] == "Poetry"
        assert by_id["stories"]["count"] == 5
        assert by_id["poems"]["count"] == 8

    def test_stories_keep_paragraphs_and_moral(self, client):
        stories = client.get("/api/content/stories").json()["items"]
        first = stories[0]
        assert first["title"] == "The Three Little Pigs"
        assert first["emoji"] == "🐷"
        assert first["moral"] == "Hard work and planning pay off!"
        assert "\n\n" in first["text"]
        lion = stories[1]
        assert '"Please don\'t eat me!" squeaked the mouse.' in lion["text"]

    def test_poems_keep_line_breaks(self, client):
        poems = client.get("/api/content/poems").json()["items"]
        assert poems[0]["title"] == "Twinkle Twinkle Little Star"
        assert poems[0]["text"].splitlines()[0] == "Twinkle, twinkle, little star,"
        assert [p["title"] for p in poems][-1] == "Five Little Ducks"

    def test_items(self, client):
        response = client.get("/api/content/number_spellings")
        items = response.json()["items"]
        assert items[0] == {"number": 1, "word": "ONE"}
        assert len(items) == 30

    def test_unknown_topic(self, client):
        response = client.get("/api/content/dinosaurs")
        assert response.status_code == 404
        assert "error" in response.json()
