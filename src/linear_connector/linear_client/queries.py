"""GraphQL documents sent to the Linear API."""

PAGE_INFO = """
    pageInfo {
        hasNextPage
        hasPreviousPage
        startCursor
        endCursor
    }
"""

USERS = f"""
query Users($after: String, $first: Int) {{
    users(after: $after, first: $first) {{
        nodes {{
            id
            name
            displayName
            email
            active
            admin
            guest
            isMe
            url
            description
            organization {{ id }}
        }}
        {PAGE_INFO}
    }}
}}
"""

TEAMS = f"""
query Teams($after: String, $first: Int) {{
    teams(after: $after, first: $first) {{
        nodes {{
            id
            name
            key
            description
        }}
        {PAGE_INFO}
    }}
}}
"""

PROJECTS = f"""
query Projects($after: String, $first: Int) {{
    projects(after: $after, first: $first) {{
        nodes {{
            id
            name
            slugId
            description
            url
        }}
        {PAGE_INFO}
    }}
}}
"""

# Sub-collections that are already exhausted are skipped with @include so a
# later page never restarts them from the beginning.
ORGANIZATION = f"""
query Organization(
    $usersAfter: String,
    $teamsAfter: String,
    $first: Int,
    $includeUsers: Boolean!,
    $includeTeams: Boolean!
) {{
    organization {{
        id
        name
        urlKey
        samlEnabled
        scimEnabled
        userCount
        users(after: $usersAfter, first: $first) @include(if: $includeUsers) {{
            nodes {{
                id
                name
                displayName
                email
                active
                admin
                guest
            }}
            {PAGE_INFO}
        }}
        teams(after: $teamsAfter, first: $first) @include(if: $includeTeams) {{
            nodes {{
                id
                name
                key
                description
            }}
            {PAGE_INFO}
        }}
    }}
}}
"""

TEAM_MEMBERSHIPS = f"""
query Team($teamId: String!, $after: String, $first: Int) {{
    team(id: $teamId) {{
        id
        name
        key
        description
        memberships(after: $after, first: $first) {{
            nodes {{
                id
                user {{
                    id
                    name
                    displayName
                    email
                    active
                }}
                team {{ id name }}
            }}
            {PAGE_INFO}
        }}
    }}
}}
"""

PROJECT = f"""
query Project(
    $projectId: String!,
    $usersAfter: String,
    $teamsAfter: String,
    $first: Int,
    $includeUsers: Boolean!,
    $includeTeams: Boolean!
) {{
    project(id: $projectId) {{
        id
        name
        slugId
        description
        url
        members(after: $usersAfter, first: $first) @include(if: $includeUsers) {{
            nodes {{
                id
                name
                displayName
                email
                active
            }}
            {PAGE_INFO}
        }}
        teams(after: $teamsAfter, first: $first) @include(if: $includeTeams) {{
            nodes {{
                id
                name
                key
            }}
            {PAGE_INFO}
        }}
    }}
}}
"""

VIEWER = """
query Viewer {
    viewer {
        id
        admin
        guest
    }
}
"""

TEAM_MEMBERSHIP_CREATE = """
mutation TeamMembershipCreate($input: TeamMembershipCreateInput!) {
    teamMembershipCreate(input: $input) {
        success
        teamMembership { id }
    }
}
"""

TEAM_MEMBERSHIP_DELETE = """
mutation TeamMembershipDelete($id: String!) {
    teamMembershipDelete(id: $id) {
        success
    }
}
"""

USER_UPDATE = """
mutation UserUpdate($id: String!, $input: UserUpdateInput!) {
    userUpdate(id: $id, input: $input) {
        success
    }
}
"""

ORGANIZATION_INVITE_CREATE = """
mutation OrganizationInviteCreate($input: OrganizationInviteCreateInput!) {
    organizationInviteCreate(input: $input) {
        success
        organizationInvite {
            id
            email
        }
    }
}
"""

ISSUE_FIELDS = """
    id
    title
    description
    url
    createdAt
    updatedAt
    state { id name }
    labels { nodes { id name } }
"""

ISSUE = f"""
query Issue($id: String!) {{
    issue(id: $id) {{
        {ISSUE_FIELDS}
    }}
}}
"""

ISSUE_CREATE = f"""
mutation IssueCreate($input: IssueCreateInput!) {{
    issueCreate(input: $input) {{
        success
        issue {{
            {ISSUE_FIELDS}
        }}
    }}
}}
"""

ISSUE_LABELS = """
query IssueLabels($name: String!) {
    issueLabels(filter: { name: { eq: $name } }, first: 1) {
        nodes {
            id
            name
        }
    }
}
"""

ISSUE_LABEL_CREATE = """
mutation IssueLabelCreate($input: IssueLabelCreateInput!) {
    issueLabelCreate(input: $input) {
        success
        issueLabel {
            id
            name
        }
    }
}
"""

TEAM_WORKFLOW_STATES = f"""
query TeamWorkflowStates($filter: TeamFilter, $after: String, $first: Int) {{
    teams(filter: $filter, after: $after, first: $first) {{
        nodes {{
            id
            name
            key
            states {{
                nodes {{
                    id
                    name
                    color
                    type
                    position
                }}
            }}
        }}
        {PAGE_INFO}
    }}
}}
"""

ISSUE_CREATE_INPUT_FIELDS = """
query IssueCreateInputFields {
    __type(name: "IssueCreateInput") {
        inputFields {
            name
            description
            type {
                name
                description
                kind
                enumValues { name }
                ofType {
                    name
                    kind
                    enumValues { name }
                    ofType {
                        name
                        kind
                    }
                }
            }
        }
    }
}
"""
