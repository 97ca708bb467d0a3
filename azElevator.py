"""
    Name:
        AzElevator

    Description:
         AzElevator activates and deactivates the following just-in-time roles for the signed-in operator, using Privileged Identity Management (PIM):
            - The 'Global Administrator' Entra role (through MS Graph)
            - The 'Owner' Azure role on a single subscription (through ARM)

        Each role is handled independently: a failure for one role is reported, but does not prevent the other role from being processed.
        Submitting a request for a role that is already in the desired state is reported as a no-op, not as a failure.

    Requirements:
        - The operator needs to be eligible for both roles in PIM
        - The following values are read from the local 'config.json' file, and can be overridden by environment variables or command-line options:
            - 'tenantId' (env: 'AZURE_TENANT_ID')
            - 'subscriptionId' (env: 'AZURE_SUBSCRIPTION_ID')

    Usage:
        python azElevator.py "Investigating incident 4242" --hours 4
        python azElevator.py --deactivate
        python azElevator.py --status

"""
import argparse
import datetime
import json
import os
import requests
import sys
import uuid

from azure.core.exceptions import ClientAuthenticationError
from azure.identity import DeviceCodeCredential, InteractiveBrowserCredential


MSGRAPH_ENDPOINT = 'https://graph.microsoft.com/v1.0'
MSGRAPH_SCOPE = 'https://graph.microsoft.com/.default'
ARM_ENDPOINT = 'https://management.azure.com'
ARM_SCOPE = 'https://management.azure.com/.default'
ARM_PIM_API_VERSION = '2020-10-01'

PLACEHOLDER_ID = '00000000-0000-0000-0000-000000000000'

DEFAULT_CONFIG = {
    'tenantId': PLACEHOLDER_ID,
    'subscriptionId': PLACEHOLDER_ID,
    'entraRoleName': 'Global Administrator',
    'azureRoleName': 'Owner',
    'azureRoleDefinitionId': '8e3af657-a8ff-443c-a75c-2fe8c4bcb635',
    'maxDurationInHours': 8,
    'defaultDeactivationReason': 'Privileged task completed'
}

# Outcomes of a single role step
SUBMITTED = 'submitted'
UNCHANGED = 'unchanged'
FAILED = 'failed'


class PimRequestError(Exception):
    """
        Raised when a PIM backend answers with an error, or cannot be reached.

    """
    def __init__(self, message, code = None):
        super().__init__(message)
        self.message = message
        self.code = code



# Configuration functions #########################################################################################################################################

def fatal_error(message):
    """
        Reports a fatal error and terminates the script with a non-zero exit code.

        Args:
            message(str): the reason of the failure

    """
    print(f"FATAL ERROR - {message}")
    sys.exit(1)


def read_config_file(config_file):
    """
        Retrieves the project configuration from the passed JSON file, completed with default values for missing keys.

        Args:
            config_file(str): path to the local JSON configuration file

        Returns:
            dict: the project configuration

    """
    config = dict(DEFAULT_CONFIG)

    if not os.path.exists(config_file):
        return config

    try:
        with open(config_file, 'r', encoding = 'utf-8') as file:
            file_content = json.load(file)

    except json.JSONDecodeError:
        fatal_error(f"The config file '{config_file}' does not contain valid JSON.")
    except OSError:
        fatal_error(f"The config file '{config_file}' could not be retrieved.")

    if not isinstance(file_content, dict):
        fatal_error(f"The config file '{config_file}' must contain a JSON object.")

    config.update({key: value for key, value in file_content.items() if value is not None})
    return config


def is_placeholder(value):
    """
        Checks if the passed tenant or subscription Id still holds a placeholder value.

        Args:
            value(str): the Id to check

        Returns:
            bool: True if the Id is missing or is the all-zero placeholder, False otherwise

    """
    return not value or value.strip() == PLACEHOLDER_ID


def get_config(args):
    """
        Builds the effective configuration: command-line options take precedence over environment variables, which take precedence over the config file.

        Args:
            args(argparse.Namespace): the parsed command-line arguments

        Returns:
            dict: the effective configuration

    """
    config_file = args.config or os.environ.get('AZELEVATOR_CONFIG_FILE') or os.path.join(os.path.dirname(os.path.abspath(__file__)), 'config.json')
    config = read_config_file(config_file)

    config['tenantId'] = args.tenant_id or os.environ.get('AZURE_TENANT_ID') or config['tenantId']
    config['subscriptionId'] = args.subscription_id or os.environ.get('AZURE_SUBSCRIPTION_ID') or config['subscriptionId']

    max_duration = config['maxDurationInHours']

    if isinstance(max_duration, bool) or not isinstance(max_duration, int) or max_duration < 1:
        fatal_error(f"The 'maxDurationInHours' value set in the config file is invalid: '{max_duration}'. Accepted values are positive integers")

    for key in ('tenantId', 'subscriptionId'):
        if config[key] is not None and not isinstance(config[key], str):
            fatal_error(f"The '{key}' value set in the config file is invalid: '{config[key]}'. Accepted values are strings")

    if is_placeholder(config['tenantId']):
        print("WARNING - No tenant Id has been configured, the default tenant of the signed-in account will be used")
        config['tenantId'] = None

    if is_placeholder(config['subscriptionId']):
        print("WARNING - No subscription Id has been configured, the Azure role request will most likely fail")

    return config



# Input functions #################################################################################################################################################

def clamp_duration(hours, maximum):
    """
        Computes the duration to request, capped to the maximum permitted activation window.

        Note:
            Missing, non-numeric, zero or negative values fall back to the maximum

        Args:
            hours(str|int): the requested number of hours
            maximum(int): the maximum number of hours permitted by PIM

        Returns:
            int: the number of hours to request

    """
    try:
        requested_hours = int(hours)
    except (TypeError, ValueError):
        return maximum

    if requested_hours < 1:
        return maximum

    return min(requested_hours, maximum)


def get_activation_justification(reason):
    """
        Retrieves the justification for an activation, prompting the operator if none has been passed.

        Args:
            reason(str): the justification passed on the command line, if any

        Returns:
            str: the justification

    """
    if reason is None:
        try:
            reason = input('Justification: ')
        except EOFError:
            reason = ''

    justification = reason.strip()

    if not justification:
        fatal_error('A justification is required to activate a role.')

    return justification


def get_deactivation_justification(reason, default_reason):
    """
        Retrieves the justification for a deactivation, falling back to the default one if none has been passed.

        Args:
            reason(str): the justification passed on the command line, if any
            default_reason(str): the justification to use otherwise

        Returns:
            str: the justification

    """
    if reason and reason.strip():
        return reason.strip()

    return default_reason



# Authentication functions ########################################################################################################################################

def get_credential(tenant_id, use_device_code = False):
    """
        Creates the interactive credential used to sign in the operator.

        Args:
            tenant_id(str): the tenant to sign in to, or None for the default tenant of the account
            use_device_code(bool): True to use the device code flow instead of a browser window

        Returns:
            azure.core.credentials.TokenCredential: the credential

    """
    kwargs = {'tenant_id': tenant_id} if tenant_id else {}

    if use_device_code:
        return DeviceCodeCredential(**kwargs)

    return InteractiveBrowserCredential(**kwargs)


def get_access_token(credential, scope):
    """
        Acquires an access token for the passed scope.

        Args:
            credential(azure.core.credentials.TokenCredential): the operator's credential
            scope(str): the scope to request a token for

        Returns:
            str: the acquired access token

    """
    try:
        return credential.get_token(scope).token
    except ClientAuthenticationError as e:
        raise PimRequestError(f"Authentication failed for '{scope}': {e}")



# HTTP helper functions ###########################################################################################################################################

def get_error_from_response(response):
    """
        Extracts the error code and message from a failed MS Graph or ARM response.

        Args:
            response(requests.models.Response): the failed HTTP response

        Returns:
            PimRequestError: the error described by the response

    """
    try:
        error = response.json().get('error', {})
    except ValueError:
        error = {}

    if not isinstance(error, dict):
        error = {}

    code = error.get('code')
    message = error.get('message') or response.text or f"HTTP {response.status_code}"
    return PimRequestError(message, code)


def send_request(method, endpoint, token, body = None):
    """
        Sends an HTTP request to MS Graph or ARM.

        Args:
            method(str): the HTTP method ('GET', 'POST' or 'PUT')
            endpoint(str): the URL to call
            token(str): the bearer token to authenticate with
            body(dict): the JSON body to send, if any

        Returns:
            dict: the JSON content of the response

        Raises:
            PimRequestError: if the request fails or is answered with an error

    """
    headers = {'Authorization': f"Bearer {token}"}
    senders = {
        'GET': requests.get,
        'POST': requests.post,
        'PUT': requests.put
    }

    try:
        if body is None:
            response = senders[method](endpoint, headers = headers)
        else:
            response = senders[method](endpoint, headers = headers, json = body)

    except requests.exceptions.RequestException as e:
        raise PimRequestError(f"The request to '{endpoint}' could not be sent: {e}")

    if not 200 <= response.status_code < 300:
        raise get_error_from_response(response)

    try:
        return response.json()
    except ValueError:
        return {}


def send_paginated_get_request(endpoint, token, next_link_key):
    """
        Sends a GET request and follows pagination until all values have been retrieved.

        Args:
            endpoint(str): the URL of the first page
            token(str): the bearer token to authenticate with
            next_link_key(str): the name of the property holding the URL of the next page ('@odata.nextLink' for MS Graph, 'nextLink' for ARM)

        Returns:
            list(dict): the values from all pages

    """
    values = []
    next_link = endpoint

    while next_link:
        data = send_request('GET', next_link, token)
        values += data.get('value', [])
        next_link = data.get(next_link_key)

    return values


def is_already_in_desired_state(error, expected_code, fallback_text):
    """
        Checks if a backend error means that the role is already in the desired state.

        Note:
            The structured error code is checked first. The message is only inspected for errors without a code.

        Args:
            error(PimRequestError): the error returned by the backend
            expected_code(str): the error code meaning that nothing needs to be done (e.g. 'RoleAssignmentExists')
            fallback_text(str): the text meaning the same within the error message

        Returns:
            bool: True if the role is already in the desired state, False otherwise

    """
    if error.code:
        return error.code.lower() == expected_code.lower()

    return fallback_text.lower() in (error.message or '').lower()


def get_schedule_info(hours, expiration_type):
    """
        Builds the schedule of an activation starting now and expiring after the passed duration.

        Args:
            hours(int): the duration of the activation
            expiration_type(str): the expiration type, spelled as expected by the backend ('afterDuration' for MS Graph, 'AfterDuration' for ARM)

        Returns:
            dict: the schedule

    """
    now = datetime.datetime.now(datetime.timezone.utc)
    return {
        'startDateTime': now.strftime('%Y-%m-%dT%H:%M:%SZ'),
        'expiration': {
            'type': expiration_type,
            'duration': f"PT{hours}H"
        }
    }



# MS Graph functions ##############################################################################################################################################

def get_signed_in_principal(token):
    """
        Retrieves the identity of the signed-in operator from MS Graph.

        Args:
            token(str): the MS Graph access token

        Returns:
            dict: the operator's 'id' and 'userPrincipalName'

    """
    endpoint = f"{MSGRAPH_ENDPOINT}/me?$select=id,userPrincipalName"

    try:
        principal = send_request('GET', endpoint, token)
    except PimRequestError as e:
        fatal_error(f"The signed-in operator could not be retrieved from MS Graph: {e.message}")

    if not principal.get('id'):
        fatal_error('The signed-in operator could not be retrieved from MS Graph.')

    return principal


def get_entra_role_eligibility(token, principal_id, role_name):
    """
        Retrieves the operator's eligibility for the passed Entra role.

        Args:
            token(str): the MS Graph access token
            principal_id(str): the object Id of the operator
            role_name(str): the display name of the Entra role

        Returns:
            dict: the eligibility schedule, or None if the operator is not eligible

    """
    endpoint = f"{MSGRAPH_ENDPOINT}/roleManagement/directory/roleEligibilitySchedules?$filter=principalId eq '{principal_id}'&$expand=roleDefinition"
    eligibilities = send_paginated_get_request(endpoint, token, '@odata.nextLink')

    for eligibility in eligibilities:
        role_definition = eligibility.get('roleDefinition') or {}

        if role_definition.get('displayName') == role_name:
            return eligibility

    return None


def get_active_entra_role_assignment(token, principal_id, role_name):
    """
        Retrieves the operator's active (i.e. PIM-activated) assignment of the passed Entra role.

        Args:
            token(str): the MS Graph access token
            principal_id(str): the object Id of the operator
            role_name(str): the display name of the Entra role

        Returns:
            dict: the assignment schedule instance, or None if the role is not currently active

    """
    endpoint = f"{MSGRAPH_ENDPOINT}/roleManagement/directory/roleAssignmentScheduleInstances?$filter=principalId eq '{principal_id}'&$expand=roleDefinition"
    instances = send_paginated_get_request(endpoint, token, '@odata.nextLink')

    for instance in instances:
        role_definition = instance.get('roleDefinition') or {}

        if role_definition.get('displayName') == role_name and instance.get('assignmentType') == 'Activated':
            return instance

    return None


def activate_entra_role(token, principal_id, eligibility, justification, hours):
    """
        Submits a self-activation request for the Entra role the operator is eligible for.

        Args:
            token(str): the MS Graph access token
            principal_id(str): the object Id of the operator
            eligibility(dict): the operator's eligibility schedule for the role
            justification(str): the reason of the activation
            hours(int): the duration of the activation

        Returns:
            tuple(str, str): the outcome and a description of it

    """
    endpoint = f"{MSGRAPH_ENDPOINT}/roleManagement/directory/roleAssignmentScheduleRequests"
    body = {
        'action': 'selfActivate',
        'principalId': principal_id,
        'roleDefinitionId': eligibility['roleDefinitionId'],
        'directoryScopeId': eligibility.get('directoryScopeId') or '/',
        'justification': justification,
        'scheduleInfo': get_schedule_info(hours, 'afterDuration')
    }

    try:
        send_request('POST', endpoint, token, body)
    except PimRequestError as e:
        if is_already_in_desired_state(e, 'RoleAssignmentExists', 'already exists'):
            return UNCHANGED, 'already active'
        return FAILED, e.message

    return SUBMITTED, f"activated for {hours} hour(s)"


def deactivate_entra_role(token, principal_id, role_name, justification):
    """
        Submits a self-deactivation request for the passed Entra role, if it is currently active.

        Args:
            token(str): the MS Graph access token
            principal_id(str): the object Id of the operator
            role_name(str): the display name of the Entra role
            justification(str): the reason of the deactivation

        Returns:
            tuple(str, str): the outcome and a description of it

    """
    try:
        instance = get_active_entra_role_assignment(token, principal_id, role_name)

        if instance is None:
            return UNCHANGED, 'not currently active'

        endpoint = f"{MSGRAPH_ENDPOINT}/roleManagement/directory/roleAssignmentScheduleRequests"
        body = {
            'action': 'selfDeactivate',
            'principalId': principal_id,
            'roleDefinitionId': instance['roleDefinitionId'],
            'directoryScopeId': instance.get('directoryScopeId') or '/',
            'justification': justification
        }
        send_request('POST', endpoint, token, body)

    except PimRequestError as e:
        if is_already_in_desired_state(e, 'RoleAssignmentDoesNotExist', 'does not exist'):
            return UNCHANGED, 'not currently active'
        return FAILED, e.message

    return SUBMITTED, 'deactivated'



# ARM functions ###################################################################################################################################################

def get_azure_role_definition_id(subscription_id, role_definition_guid):
    """
        Builds the fully qualified Id of an Azure role definition within the passed subscription.

        Args:
            subscription_id(str): the Id of the subscription
            role_definition_guid(str): the GUID of the role definition

        Returns:
            str: the fully qualified role definition Id

    """
    return f"/subscriptions/{subscription_id}/providers/Microsoft.Authorization/roleDefinitions/{role_definition_guid}"


def is_matching_azure_instance(instance, subscription_id, role_definition_guid):
    """
        Checks if the passed ARM schedule instance is for the passed role, directly at the scope of the passed subscription.

        Args:
            instance(dict): the ARM schedule instance
            subscription_id(str): the Id of the subscription
            role_definition_guid(str): the GUID of the role definition

        Returns:
            bool: True if the instance matches, False otherwise

    """
    properties = instance.get('properties', {})
    role_definition_id = properties.get('roleDefinitionId') or ''
    scope = properties.get('scope') or ''

    is_same_role = role_definition_id.split('/')[-1].lower() == role_definition_guid.lower()
    is_same_scope = scope.rstrip('/').lower() == f"/subscriptions/{subscription_id}".lower()
    return is_same_role and is_same_scope


def get_azure_role_eligibility(token, subscription_id, role_definition_guid):
    """
        Retrieves the operator's eligibility for the passed Azure role on the passed subscription.

        Args:
            token(str): the ARM access token
            subscription_id(str): the Id of the subscription
            role_definition_guid(str): the GUID of the role definition

        Returns:
            dict: the eligibility schedule instance, or None if the operator is not eligible

    """
    endpoint = f"{ARM_ENDPOINT}/subscriptions/{subscription_id}/providers/Microsoft.Authorization/roleEligibilityScheduleInstances?api-version={ARM_PIM_API_VERSION}&$filter=asTarget()"
    instances = send_paginated_get_request(endpoint, token, 'nextLink')

    for instance in instances:
        if is_matching_azure_instance(instance, subscription_id, role_definition_guid):
            return instance

    return None


def get_active_azure_role_assignment(token, subscription_id, role_definition_guid):
    """
        Retrieves the operator's active (i.e. PIM-activated) assignment of the passed Azure role on the passed subscription.

        Args:
            token(str): the ARM access token
            subscription_id(str): the Id of the subscription
            role_definition_guid(str): the GUID of the role definition

        Returns:
            dict: the assignment schedule instance, or None if the role is not currently active

    """
    endpoint = f"{ARM_ENDPOINT}/subscriptions/{subscription_id}/providers/Microsoft.Authorization/roleAssignmentScheduleInstances?api-version={ARM_PIM_API_VERSION}&$filter=asTarget()"
    instances = send_paginated_get_request(endpoint, token, 'nextLink')

    for instance in instances:
        is_activated = instance.get('properties', {}).get('assignmentType') == 'Activated'

        if is_activated and is_matching_azure_instance(instance, subscription_id, role_definition_guid):
            return instance

    return None


def send_azure_role_request(token, subscription_id, properties):
    """
        Submits a role assignment schedule request to ARM, named with a fresh GUID acting as idempotency token.

        Args:
            token(str): the ARM access token
            subscription_id(str): the Id of the subscription
            properties(dict): the properties of the request

        Returns:
            dict: the created request

    """
    request_name = str(uuid.uuid4())
    endpoint = f"{ARM_ENDPOINT}/subscriptions/{subscription_id}/providers/Microsoft.Authorization/roleAssignmentScheduleRequests/{request_name}?api-version={ARM_PIM_API_VERSION}"
    return send_request('PUT', endpoint, token, {'properties': properties})


def activate_azure_role(credential, subscription_id, principal_id, role_definition_guid, justification, hours):
    """
        Submits a self-activation request for the passed Azure role on the passed subscription.

        Args:
            credential(azure.core.credentials.TokenCredential): the operator's credential
            subscription_id(str): the Id of the subscription
            principal_id(str): the object Id of the operator
            role_definition_guid(str): the GUID of the role definition
            justification(str): the reason of the activation
            hours(int): the duration of the activation

        Returns:
            tuple(str, str): the outcome and a description of it

    """
    try:
        token = get_access_token(credential, ARM_SCOPE)
        properties = {
            'principalId': principal_id,
            'roleDefinitionId': get_azure_role_definition_id(subscription_id, role_definition_guid),
            'requestType': 'SelfActivate',
            'justification': justification,
            'scheduleInfo': get_schedule_info(hours, 'AfterDuration')
        }

        # Link the request to the eligibility when it can be found, ARM decides otherwise
        try:
            eligibility = get_azure_role_eligibility(token, subscription_id, role_definition_guid)
        except PimRequestError as e:
            print(f"WARNING - The Azure role eligibility could not be retrieved, the request will not be linked to it: {e.message}")
            eligibility = None

        if eligibility is not None:
            properties['linkedRoleEligibilityScheduleId'] = eligibility['properties'].get('roleEligibilityScheduleId')

        send_azure_role_request(token, subscription_id, properties)

    except PimRequestError as e:
        if is_already_in_desired_state(e, 'RoleAssignmentExists', 'already exists'):
            return UNCHANGED, 'already active'
        return FAILED, e.message

    return SUBMITTED, f"activated for {hours} hour(s)"


def deactivate_azure_role(credential, subscription_id, principal_id, role_definition_guid, justification):
    """
        Submits a self-deactivation request for the passed Azure role, if it is currently active on the passed subscription.

        Args:
            credential(azure.core.credentials.TokenCredential): the operator's credential
            subscription_id(str): the Id of the subscription
            principal_id(str): the object Id of the operator
            role_definition_guid(str): the GUID of the role definition
            justification(str): the reason of the deactivation

        Returns:
            tuple(str, str): the outcome and a description of it

    """
    try:
        token = get_access_token(credential, ARM_SCOPE)
        instance = get_active_azure_role_assignment(token, subscription_id, role_definition_guid)

        if instance is None:
            return UNCHANGED, 'not currently active'

        properties = {
            'principalId': principal_id,
            'roleDefinitionId': instance['properties']['roleDefinitionId'],
            'requestType': 'SelfDeactivate',
            'justification': justification
        }
        send_azure_role_request(token, subscription_id, properties)

    except PimRequestError as e:
        if is_already_in_desired_state(e, 'RoleAssignmentDoesNotExist', 'does not exist'):
            return UNCHANGED, 'not currently active'
        return FAILED, e.message

    return SUBMITTED, 'deactivated'



# Workflow functions ##############################################################################################################################################

def get_role_labels(config):
    """
        Returns the labels used to report on the Entra and Azure roles.

    """
    entra_label = f"Entra role '{config['entraRoleName']}'"
    azure_label = f"Azure role '{config['azureRoleName']}' on subscription '{config['subscriptionId']}'"
    return entra_label, azure_label


def run_activation(credential, msgraph_token, principal_id, config, justification, hours):
    """
        Activates the Entra role, then the Azure role.

        Note:
            The operator has to be eligible for the Entra role, otherwise nothing is submitted and the script terminates

        Returns:
            list(tuple(str, str, str)): the label, outcome and description for each role

    """
    entra_label, azure_label = get_role_labels(config)

    try:
        eligibility = get_entra_role_eligibility(msgraph_token, principal_id, config['entraRoleName'])
    except PimRequestError as e:
        fatal_error(f"The eligibility for the {entra_label} could not be retrieved from MS Graph: {e.message}")

    if eligibility is None:
        fatal_error(f"The signed-in operator is not eligible for the {entra_label}. No role has been activated.")

    print(f"Activating the {entra_label} for {hours} hour(s)...")
    entra_status, entra_message = activate_entra_role(msgraph_token, principal_id, eligibility, justification, hours)

    print(f"Activating the {azure_label} for {hours} hour(s)...")
    azure_status, azure_message = activate_azure_role(credential, config['subscriptionId'], principal_id, config['azureRoleDefinitionId'], justification, hours)

    return [
        (entra_label, entra_status, entra_message),
        (azure_label, azure_status, azure_message)
    ]


def run_deactivation(credential, msgraph_token, principal_id, config, justification):
    """
        Deactivates the Entra role, then the Azure role.

        Returns:
            list(tuple(str, str, str)): the label, outcome and description for each role

    """
    entra_label, azure_label = get_role_labels(config)

    print(f"Deactivating the {entra_label}...")
    entra_status, entra_message = deactivate_entra_role(msgraph_token, principal_id, config['entraRoleName'], justification)

    print(f"Deactivating the {azure_label}...")
    azure_status, azure_message = deactivate_azure_role(credential, config['subscriptionId'], principal_id, config['azureRoleDefinitionId'], justification)

    return [
        (entra_label, entra_status, entra_message),
        (azure_label, azure_status, azure_message)
    ]


def describe_role_state(eligibility, instance, end_date_time):
    """
        Describes the eligibility and activation state of a role in a human-readable way.

    """
    eligibility_state = 'eligible' if eligibility is not None else 'not eligible'

    if instance is None:
        return f"{eligibility_state}, not currently active"

    if end_date_time:
        return f"{eligibility_state}, active until {end_date_time}"

    return f"{eligibility_state}, active"


def run_status(credential, msgraph_token, principal_id, config):
    """
        Retrieves the eligibility and activation state of the Entra role and of the Azure role, without submitting anything.

        Returns:
            list(tuple(str, str, str)): the label, outcome and description for each role

    """
    entra_label, azure_label = get_role_labels(config)
    results = []

    try:
        eligibility = get_entra_role_eligibility(msgraph_token, principal_id, config['entraRoleName'])
        instance = get_active_entra_role_assignment(msgraph_token, principal_id, config['entraRoleName'])
        end_date_time = instance.get('endDateTime') if instance else None
        results.append((entra_label, UNCHANGED, describe_role_state(eligibility, instance, end_date_time)))
    except PimRequestError as e:
        results.append((entra_label, FAILED, e.message))

    try:
        token = get_access_token(credential, ARM_SCOPE)
        eligibility = get_azure_role_eligibility(token, config['subscriptionId'], config['azureRoleDefinitionId'])
        instance = get_active_azure_role_assignment(token, config['subscriptionId'], config['azureRoleDefinitionId'])
        end_date_time = instance['properties'].get('endDateTime') if instance else None
        results.append((azure_label, UNCHANGED, describe_role_state(eligibility, instance, end_date_time)))
    except PimRequestError as e:
        results.append((azure_label, FAILED, e.message))

    return results


def print_results(results):
    """
        Prints one status line per role.

        Args:
            results(list(tuple(str, str, str))): the label, outcome and description for each role

    """
    icons = {
        SUBMITTED: '✅',
        UNCHANGED: '➖',
        FAILED: '❌'
    }
    print()

    for label, status, message in results:
        print(f"{icons[status]} {label}: {message}")



# Main ############################################################################################################################################################

def parse_arguments(argv = None):
    parser = argparse.ArgumentParser(
        prog = 'azelevator',
        description = "Activates or deactivates the operator's just-in-time Entra and Azure roles through PIM."
    )
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument('-a', '--activate', action = 'store_true', help = 'activate both roles (default)')
    mode.add_argument('-d', '--deactivate', action = 'store_true', help = 'deactivate both roles')
    mode.add_argument('-s', '--status', action = 'store_true', help = 'show the eligibility and activation state of both roles')
    parser.add_argument('reason', nargs = '?', help = 'justification of the request (prompted for when activating)')
    parser.add_argument('-r', '--reason', dest = 'reason_option', metavar = 'REASON', help = 'justification of the request')
    parser.add_argument('-H', '--hours', help = 'duration of the activation in hours, capped to the configured maximum')
    parser.add_argument('-t', '--tenant-id', help = "overrides the tenant Id set in 'config.json' or 'AZURE_TENANT_ID'")
    parser.add_argument('-S', '--subscription-id', help = "overrides the subscription Id set in 'config.json' or 'AZURE_SUBSCRIPTION_ID'")
    parser.add_argument('-c', '--config', help = "path to the JSON config file (default: 'config.json' next to this script)")
    parser.add_argument('--device-code', action = 'store_true', help = 'sign in with a device code instead of a browser window')
    return parser.parse_args(argv)


def main(argv = None):
    """
        Runs AzElevator.

        Returns:
            int: 0 if every role ended in the desired state, 1 otherwise

    """
    args = parse_arguments(argv)
    reason = args.reason_option if args.reason_option is not None else args.reason
    config = get_config(args)

    # Validate input before contacting any backend
    if args.deactivate:
        justification = get_deactivation_justification(reason, config['defaultDeactivationReason'])
    elif not args.status:
        justification = get_activation_justification(reason)
        hours = clamp_duration(args.hours, config['maxDurationInHours'])

    # Sign in the operator
    credential = get_credential(config['tenantId'], args.device_code)

    try:
        msgraph_token = get_access_token(credential, MSGRAPH_SCOPE)
    except PimRequestError as e:
        fatal_error(e.message)

    principal = get_signed_in_principal(msgraph_token)
    print(f"Signed in as '{principal.get('userPrincipalName', principal['id'])}' ({principal['id']})")

    if args.deactivate:
        results = run_deactivation(credential, msgraph_token, principal['id'], config, justification)
    elif args.status:
        results = run_status(credential, msgraph_token, principal['id'], config)
    else:
        results = run_activation(credential, msgraph_token, principal['id'], config, justification, hours)

    print_results(results)

    if any(status == FAILED for _, status, _ in results):
        return 1

    return 0



if __name__ == "__main__":
    sys.exit(main())
