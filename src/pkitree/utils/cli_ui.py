# pkitree/utils/cli_ui.py

import getpass

def get_confirmed_password(label: str = 'password') -> str:
    while True:
        password = getpass.getpass(f'🔑 Enter the {label}: ')
        confirm_password = getpass.getpass(f'🔁 Confirm the {label}: ')
        if password == confirm_password:
            print('✅ Password confirmed.')
            return password
        else:
            print('❌ Passwords do not match. Please try again.\n')

def get_password(label: str = 'password') -> str:
    return getpass.getpass(f'🔑 Enter the {label}: ')
