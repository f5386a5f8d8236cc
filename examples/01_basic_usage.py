"""
Basic API Client Usage Examples

Demonstrates typed calls, raw calls, typed failures and diagnostic mode
against a public JSON API.
"""

from typing import List

from pydantic import BaseModel

from api_client import (
    ApiClient,
    ApiClientConfig,
    ApiRequest,
    NonSuccessStatusError,
    TransportFault,
)

BASE_URL = "https://jsonplaceholder.typicode.com"


class Post(BaseModel):
    id: int
    userId: int
    title: str


class PostsApi(ApiClient):
    """Wrapper a test suite would build on top of ApiClient."""

    def get_post(self, post_id: int) -> Post:
        return self.execute(ApiRequest.get(f"/posts/{post_id}"), Post)

    def posts_by_user(self, user_id: int) -> List[Post]:
        return self.execute(ApiRequest.get("/posts", params={"userId": user_id}), List[Post])

    def create_post(self, title: str, user_id: int) -> Post:
        request = ApiRequest.post("/posts", json={"title": title, "body": "...", "userId": user_id})
        return self.execute(request, Post)

    def delete_post(self, post_id: int) -> int:
        with self.execute_raw(ApiRequest.delete(f"/posts/{post_id}")) as response:
            return response.status_code


def typed_calls():
    """GET and POST decoded into models."""
    print("\n=== Typed Calls ===")

    with PostsApi(BASE_URL) as api:
        post = api.get_post(1)
        print(f"Post: {post}")

        posts = api.posts_by_user(1)
        print(f"Found {len(posts)} posts for user 1")

        created = api.create_post("My Post", 1)
        print(f"Created: {created}")


def raw_call():
    """DELETE through execute_raw: status is not checked."""
    print("\n=== Raw Call ===")

    with PostsApi(BASE_URL) as api:
        print(f"Status: {api.delete_post(1)}")


def typed_failure():
    """404 raises NonSuccessStatusError with the body kept."""
    print("\n=== Typed Failure ===")

    with PostsApi(BASE_URL) as api:
        try:
            api.get_post(0)
        except NonSuccessStatusError as e:
            print(f"Status: {e.status_code}, body: {e.body!r}")


def per_call_deadline():
    """Per-call timeout overrides the transport default."""
    print("\n=== Per-call Deadline ===")

    with ApiClient("https://httpbin.org") as client:
        try:
            client.execute(ApiRequest.get("/delay/3"), dict, timeout=1)
        except TransportFault as e:
            print(f"{type(e).__name__}: {e}")


def diagnostic_mode():
    """Response bodies saved as artifacts in ./artifacts."""
    print("\n=== Diagnostic Mode ===")

    config = ApiClientConfig.create(diagnostics=True, artifact_dir="artifacts")
    with PostsApi(BASE_URL, config=config) as api:
        api.get_post(2)
        print(f"Artifacts: {api.diagnostics_sink.artifacts}")


if __name__ == "__main__":
    print("=" * 50)
    print("API Client - Basic Usage Examples")
    print("=" * 50)

    try:
        typed_calls()
        raw_call()
        typed_failure()
        per_call_deadline()
        diagnostic_mode()

        print("\n" + "=" * 50)
        print("All examples completed successfully!")
        print("=" * 50)

    except TransportFault as e:
        print(f"\nNetwork error: {e}")
