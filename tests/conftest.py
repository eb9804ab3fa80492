"""Shared fixtures for gql-netgraph tests."""

import pytest
from graphql import build_schema

from gql_netgraph.core.console import register_logger

SCHEMA_SDL = '''
interface Node {
  id: ID!
}

"""A person using the site"""
type User implements Node {
  id: ID!
  "The display name"
  name: String
  email: String!
  role: Role
  friends: [User!]
  posts(first: Int): [Post]
}

type Post implements Node {
  id: ID!
  title: String!
  author: User
}

union SearchResult = User | Post

enum Role {
  ADMIN
  MEMBER
}

input UserFilter {
  "Search text"
  text: String
  role: Role
}

scalar JSON

type Query {
  user("The user id" id: ID!): User
  users(filter: UserFilter, limit: Int): [User!]!
  node("Node id" id: ID!): Node
  search(text: String!): [SearchResult]
  meta: JSON
}

type Mutation {
  updateUser(id: ID!, name: String): User
}

type Subscription {
  userUpdated: User
}
'''

OPERATIONS_DOC = '''
query GetUser($id: ID!) @netlify(id: "q1", doc: "Fetch one user") {
  user(id: $id) {
    ...UserFields
  }
}

fragment UserFields on User @netlify(id: "f1", doc: "Basic user fields") {
  id
  name
}

mutation UpdateUser($id: ID!, $name: String) @netlify(id: "m1", doc: "Rename a user") {
  updateUser(id: $id, name: $name) {
    id
    name
  }
}

subscription UserUpdated @netlify(id: "s1", doc: "Listen for user changes") {
  userUpdated {
    id
  }
}

query Unannotated {
  meta
}
'''


@pytest.fixture
def schema_sdl():
    return SCHEMA_SDL


@pytest.fixture
def schema():
    """Schema with objects, an interface, a union, an enum and an input."""
    return build_schema(SCHEMA_SDL)


@pytest.fixture
def operations_doc():
    return OPERATIONS_DOC


@pytest.fixture(autouse=True)
def reset_registered_logger():
    yield
    register_logger(None)
