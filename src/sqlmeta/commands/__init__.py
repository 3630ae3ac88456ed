"""Shell commands exposing sqlmeta functionalities.

SQLMeta
=======

``sqlmeta parse`` parses a SQL query and prints its parse tree::

    sqlmeta parse --query "SELECT * FROM users"

The extracted metadata can be printed as tables or as JSON::

    sqlmeta parse --file query.sql --format analyze
    echo "SELECT u.name FROM users u JOIN orders o ON o.user_id = u.id" | sqlmeta parse --format json

``sqlmeta grammar`` prints the supported SQL grammar in PEG notation.
``sqlmeta credits`` displays the version and the features of the project.
"""
