def test_create_and_list_posts_with_author(client, register):
    headers, user = register("writer")
    r = client.post(
        "/posts",
        headers=headers,
        json={"content": "Hello network", "tags": ["intro", "Intro", ""], "type": "text"},
    )
    assert r.status_code == 201, r.text
    post = r.json()["post"]
    assert post["authorId"] == user["id"]
    assert post["tags"] == ["intro"]
    assert (post["likes"], post["comments"], post["shares"]) == (0, 0, 0)

    client.post("/posts", headers=headers, json={"content": "Second"})
    posts = client.get("/posts").json()["posts"]
    assert [p["content"] for p in posts] == ["Second", "Hello network"]
    assert posts[0]["author"]["username"] == "writer"
    assert "password" not in posts[0]["author"]

    assert [p["content"] for p in client.get("/posts", params={"limit": 1, "offset": 1}).json()["posts"]] == [
        "Hello network"
    ]


def test_post_validation(client, register):
    headers, _ = register("writer")
    assert client.post("/posts", headers=headers, json={"content": "   "}).status_code == 400
    assert client.post("/posts", headers=headers, json={"content": "x", "type": "video"}).status_code == 400
    assert client.post("/posts", headers=headers, json={"content": "x", "jobId": "missing"}).status_code == 404


def test_post_counters_increment_cumulatively(client, register):
    headers, _ = register("writer")
    post_id = client.post("/posts", headers=headers, json={"content": "Like me"}).json()["post"]["id"]

    for _ in range(3):
        assert client.post(f"/posts/{post_id}/like", headers=headers).status_code == 200
    client.post(f"/posts/{post_id}/comment", headers=headers)
    r = client.post(f"/posts/{post_id}/share", headers=headers)
    post = r.json()["post"]
    assert (post["likes"], post["comments"], post["shares"]) == (3, 1, 1)

    assert client.post("/posts/missing/like", headers=headers).status_code == 404
    assert client.post(f"/posts/{post_id}/like").status_code == 401


def test_connection_request_accept_flow(client, register):
    alice, alice_user = register("alice")
    bob, bob_user = register("bob")

    r = client.post("/connections", headers=alice, json={"recipientId": bob_user["id"]})
    assert r.status_code == 201, r.text
    conn = r.json()["connection"]
    assert conn["status"] == "pending"

    # Duplicate in either direction.
    assert client.post("/connections", headers=alice, json={"recipientId": bob_user["id"]}).status_code == 409
    assert client.post("/connections", headers=bob, json={"recipientId": alice_user["id"]}).status_code == 409

    pending = client.get("/connections/pending", headers=bob).json()["connections"]
    assert [c["id"] for c in pending] == [conn["id"]]
    assert pending[0]["requester"]["username"] == "alice"

    # Only the recipient may answer.
    assert client.patch(f"/connections/{conn['id']}", headers=alice, json={"status": "accepted"}).status_code == 403
    r = client.patch(f"/connections/{conn['id']}", headers=bob, json={"status": "accepted"})
    assert r.status_code == 200, r.text

    for headers in (alice, bob):
        rows = client.get("/connections", headers=headers).json()["connections"]
        assert len(rows) == 1
        assert rows[0]["requester"]["id"] == alice_user["id"]
        assert rows[0]["recipient"]["id"] == bob_user["id"]

    assert client.get("/connections/pending", headers=bob).json()["connections"] == []


def test_connection_edge_cases(client, register):
    alice, alice_user = register("alice")
    bob, bob_user = register("bob")

    assert client.post("/connections", headers=alice, json={"recipientId": alice_user["id"]}).status_code == 400
    assert client.post("/connections", headers=alice, json={"recipientId": "missing"}).status_code == 404

    conn_id = client.post("/connections", headers=alice, json={"recipientId": bob_user["id"]}).json()["connection"]["id"]
    assert client.patch(f"/connections/{conn_id}", headers=bob, json={"status": "blocked"}).status_code == 400
    assert client.patch(f"/connections/{conn_id}", headers=bob, json={"status": "rejected"}).status_code == 200

    # A rejected request does not block a new one.
    r = client.post("/connections", headers=bob, json={"recipientId": alice_user["id"]})
    assert r.status_code == 201, r.text
    assert client.get("/connections", headers=alice).json()["connections"] == []
