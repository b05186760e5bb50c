# cdrbilling

A small line-oriented TCP service for telecom billing. Users sign up and log
in through a text menu; once logged in they can turn a file of call detail
records (CDRs) into a per-customer billing report. Two servers and a terminal
client are included, and the pieces behind them can be used as a library.

The package has no dependencies outside the standard library.

## Installation

```
pip install .
```

To run the test suite:

```
pip install ".[test]"
pytest
```

## Commands

### `cdrbilling-server`

```
cdrbilling-server [--host HOST] [--port PORT] [--users FILE] [--cdr FILE] [--report FILE]
```

Defaults: host `0.0.0.0`, port `8080`, users file `users.txt`, CDR file
`cdr.txt`, report file `CB.txt`.

The server accepts a single client, runs its session, and stops when that
client leaves. The client sees:

```
--- Main Menu ---
1. SignUp
2. Login
3. Exit
Choice:
```

- **SignUp** asks for a username and refuses one that already exists, then
  asks for a password and accepts it only if it has at least eight characters
  including an upper-case letter, a lower-case letter, a digit and one of
  `!@#$%^&()_-+=<>?/`. Accounts are appended to the users file as
  `username password` lines, in plain text.
- **Login** asks for a username and password and, if they match a stored
  account, opens the post-login menu.
- **Exit** answers `Goodbye!` and closes the connection.

The post-login menu offers:

1. **Process CDR File** – two workers run side by side. The customer billing
   worker reads the CDR file, writes the billing report and reports when it
   is done; the interoperator worker only sends progress messages. Each
   waits two seconds before reporting completion.
2. **Print/Search Billing Info** – replies with `Billing Info: (Dummy Data)`.
3. **Logout** – returns to the main menu.

### `cdrbilling-threaded-server`

```
cdrbilling-threaded-server [--host HOST] [--port PORT] [--users FILE]
```

Defaults: host `0.0.0.0`, port `8080`, users file `users.txt`.

Serves any number of clients at once, each on its own thread, and runs until
interrupted. Each round sends a menu (`1. Signup`, `2. Login`, `3. Exit`);
for options other than `3` it then asks for a username and a password.
Sign-up adds the account unless the username is taken; login checks the
credentials; any other option is answered with `Invalid option.` after both
fields have been read. This server applies no password policy. Passwords are
stored obscured with a single-character XOR cipher (key `K`), and access to
the users file is serialised between threads.

### `cdrbilling-client`

```
cdrbilling-client [--host HOST] [--port PORT] [--guided]
```

Defaults: host `127.0.0.1`, port `8080`.

By default the client prints everything the server sends and, whenever a
message contains `Choice:`, `Enter Username` or `Enter Password`, reads a
line from standard input and sends it. It stops when the server says
`Goodbye`, closes the connection, or input runs out.

With `--guided` the client walks through each round of the threaded server's
menu: it sends the option, then the username, then a password. A password
that does not mix upper case, lower case, digits and some other character is
asked for again before anything is sent. After `Signup successful` it sends
`2` to go straight to login; after other replies it waits for Enter before
returning to the menu.

Each module can also be started with `python -m`, for example
`python -m cdrbilling.server --port 9000`.

## CDR input and the billing report

CDR files hold one record per line with fields separated by `|`. Empty
fields between consecutive separators are skipped rather than counted, and
lines with fewer than nine fields are ignored. Two layouts are understood
(`cdrbilling.cdr.CdrLayout`):

- `STANDARD`: `msisdn|operator|-|type|duration|download|upload|-|third-party operator`.
  Calls and messages are counted as within the operator when the third-party
  operator equals the subscriber's operator, and as outside it otherwise.
- `LEGACY`: `id|operator|-|type|-|-|usage|-|-`. The id is read as an integer,
  the operator is cut to 19 characters, all traffic counts as within the
  operator, and for `GPRS` the usage is added to both download and upload.
  This is the layout `cdrbilling-server` reads.

The service types counted are:

| Type     | Counted as                                  |
|----------|---------------------------------------------|
| `MTC`    | incoming voice call duration                |
| `MOC`    | outgoing voice call duration                |
| `SMS-MT` | one incoming SMS message                    |
| `SMS-MO` | one outgoing SMS message                    |
| `GPRS`   | megabytes downloaded / uploaded             |

Other types create the customer entry but add nothing. At most 1000
customers are kept; records for further new customers are dropped.
Customers appear in the report in order of first appearance:

```
Customer ID: <id> (<operator>)
	* Services within the mobile operator *
	Incoming voice call durations: ...
	Outgoing voice call durations: ...
	Incoming SMS messages: ...
	Outgoing SMS messages: ...
	* Services outside the mobile operator *
	Incoming voice call durations: ...
	Outgoing voice call durations: ...
	Incoming SMS messages: ...
	Outgoing SMS messages: ...
	* Internet use *
	MB downloaded: ... | MB uploaded: ...
```

Reports in the `STANDARD` layout begin with a `# Customers Data Base:` line;
the server's `LEGACY` reports do not.

## Library use

```python
from cdrbilling.cdr import CdrLayout, aggregate, format_report, process_customer_billing
from cdrbilling.passwords import is_valid_password

is_valid_password("short")          # False: too short, no digit or symbol

customers = process_customer_billing("data.txt", "CB.txt")
print(customers[0].incoming_voice)
```

- `cdrbilling.passwords` – `is_valid_password` (the server's sign-up rule)
  and `is_complex_enough` (the guided client's looser check, with no length
  requirement).
- `cdrbilling.users` – `UserStore` over a users file (`exists`, `verify`,
  `add`, `add_if_absent`), and `xor_cipher`.
- `cdrbilling.cdr` – `CdrLayout`, `CdrRecord`, `CustomerBilling`,
  `parse_record`, `aggregate`, `format_report` and `process_customer_billing`.
- `cdrbilling.server` – `MenuSession` (the per-client conversation, usable
  over any object with `recv`, `sendall` and `close`), `serve` and `main`.
- `cdrbilling.threaded_server` – `handle_client`, `serve` and `main`.
- `cdrbilling.client` – `is_prompt`, `run_prompt_client`,
  `run_guided_client` and `main`.

## What the package does not do

- The billing menu's "Print/Search Billing Info" returns a fixed placeholder
  reply; there is no search over the report.
- Interoperator billing only sends progress messages; no interoperator
  totals are computed or written.
- `cdrbilling-server` serves one client and then exits.
- `cdrbilling-threaded-server` has no post-login billing menu.
- Credentials are stored in plain text or with a trivial XOR cipher, and
  connections are not encrypted; neither is suitable for real secrets.