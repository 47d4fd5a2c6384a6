"""Database seeder for the social graph: users, friendships, posts, tags, comments."""
import asyncio
import argparse
import random
import time
import uuid
from datetime import datetime, timezone, timedelta

from socialgraph.config import settings
from socialgraph.database import Database
from socialgraph.models import Comment, Friendship, Post, PostTag, User
from socialgraph.security import hash_password

TAGS = ["python", "fastapi", "postgresql", "go", "docker", "kubernetes",
        "react", "typescript", "aws", "devops", "testing", "performance",
        "security", "microservices", "graphql", "rest-api"]

async def seed(small: bool = False):
    num_users = 10 if small else 200
    friends_per_user = 3 if small else 20
    num_posts = 100 if small else 10000
    num_comments_per_post = 2 if small else 5

    print(f"Seeding: {num_users} users, ~{num_users * friends_per_user // 2} friendships, {num_posts} posts")
    start = time.perf_counter()

    db = Database.from_settings(settings)
    await db.drop_all()
    await db.create_all()

    # One hash shared by every seeded user.
    password_hash = hash_password("password")

    async with db.transaction() as session:
        # Create users
        users = []
        for i in range(num_users):
            user = User(
                name=f"Seed User {i:04d}",
                email=f"user_{i:04d}@example.com",
                password_hash=password_hash,
                created_at=datetime.now(timezone.utc) - timedelta(days=num_users - i),
            )
            session.add(user)
            users.append(user)
        await session.flush()
        print(f"  Created {len(users)} users")

        # Create friendships: both directed rows per edge, counters in step
        edges = set()
        for user in users:
            for other in random.sample(users, k=min(friends_per_user, num_users - 1)):
                if other.id != user.id:
                    edges.add(tuple(sorted((user.id, other.id))))
        by_id = {u.id: u for u in users}
        for a, b in edges:
            session.add(Friendship(user_id=a, friend_id=b))
            session.add(Friendship(user_id=b, friend_id=a))
            by_id[a].friend_count += 1
            by_id[b].friend_count += 1
        await session.flush()
        print(f"  Created {len(edges)} friendships")

        friends_of = {u.id: [] for u in users}
        for a, b in edges:
            friends_of[a].append(b)
            friends_of[b].append(a)

        # Create posts in batches
        batch_size = 500
        total_comments = 0
        for batch_start in range(0, num_posts, batch_size):
            batch_end = min(batch_start + batch_size, num_posts)
            for i in range(batch_start, batch_end):
                author = random.choice(users)
                created = datetime.now(timezone.utc) - timedelta(minutes=random.randint(0, 60 * 24 * 365))
                post = Post(
                    id=str(uuid.uuid4()),
                    user_id=author.id,
                    post_in_html=f"Post {i}: notes on {random.choice(TAGS)}",
                    created_at=created,
                )
                session.add(post)

                for tag in random.sample(TAGS, k=random.randint(1, 4)):
                    session.add(PostTag(post_id=post.id, tag=tag))

                # Only the author and the author's friends may comment
                commenters = [author.id] + friends_of[author.id]
                for n in range(random.randint(0, num_comments_per_post)):
                    session.add(Comment(
                        post_id=post.id,
                        user_id=random.choice(commenters),
                        comment=f"Comment {n} on post {i}",
                        created_at=created + timedelta(minutes=n + 1),
                    ))
                    total_comments += 1
            await session.flush()

            print(f"  Batch {batch_start}-{batch_end}: posts created")

    await db.dispose()

    elapsed = time.perf_counter() - start
    print(f"\nSeeding complete in {elapsed:.1f}s")
    print(f"  Users: {num_users}")
    print(f"  Friendships: {len(edges)}")
    print(f"  Posts: {num_posts}")
    print(f"  Comments: {total_comments}")


def main():
    parser = argparse.ArgumentParser(description="Seed the social graph database")
    parser.add_argument("--small", action="store_true", help="Use small dataset (100 posts)")
    args = parser.parse_args()
    asyncio.run(seed(small=args.small))


if __name__ == "__main__":
    main()
